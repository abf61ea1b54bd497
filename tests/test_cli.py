from __future__ import annotations

import json
from pathlib import Path
from shutil import copytree

import pytest
from typer.testing import CliRunner

from blogdantic.cli import app

FIXTURES = Path(__file__).parent / "fixtures"

runner = CliRunner()


def copy_fixture(name: str, destination: Path) -> Path:
    source = FIXTURES / name
    target = destination / name
    copytree(source, target)
    return target


@pytest.fixture
def posts_dir(tmp_path: Path) -> Path:
    posts = copy_fixture("blog", tmp_path) / "_posts"
    (posts / "README.md").unlink()
    return posts


def test_lint_clean_posts(posts_dir: Path) -> None:
    result = runner.invoke(app, ["lint", str(posts_dir)])
    assert result.exit_code == 0, result.output
    assert "2 file(s) checked: 0 error(s), 0 warning(s)" in result.output


def test_lint_defaults_to_posts_dir(
    posts_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(posts_dir.parent)
    result = runner.invoke(app, ["lint"])
    assert result.exit_code == 0, result.output


def test_lint_reports_issues(tmp_path: Path) -> None:
    broken = copy_fixture("broken", tmp_path)
    result = runner.invoke(app, ["lint", str(broken / "no-frontmatter.md")])
    assert result.exit_code == 1
    assert "no-frontmatter.md:1: BD001 error" in result.output


def test_lint_json_output(tmp_path: Path) -> None:
    broken = copy_fixture("broken", tmp_path)
    result = runner.invoke(app, ["lint", "--format", "json", str(broken / "no-frontmatter.md")])
    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert [issue["code"] for issue in payload["issues"]] == ["BD001", "BD006"]


def test_lint_strict_fails_on_warnings(tmp_path: Path) -> None:
    post = tmp_path / "2013-05-14-closures.md"
    post.write_text("---\nlayout: post\ntitle: Closures\n---\n\n```\nx\n```\n", encoding="utf-8")

    assert runner.invoke(app, ["lint", str(post)]).exit_code == 0
    assert runner.invoke(app, ["lint", "--strict", str(post)]).exit_code == 1


def test_lint_with_config(tmp_path: Path) -> None:
    broken = copy_fixture("broken", tmp_path)
    config = tmp_path / "blogdantic.yml"
    config.write_text("disabled_rules: [BD001, BD006]\n", encoding="utf-8")

    result = runner.invoke(
        app, ["lint", "--config", str(config), str(broken / "no-frontmatter.md")]
    )
    assert result.exit_code == 0, result.output


def test_lint_missing_path(tmp_path: Path) -> None:
    result = runner.invoke(app, ["lint", str(tmp_path / "nowhere")])
    assert result.exit_code == 2
    assert "does not exist" in result.output


def test_list_posts(posts_dir: Path) -> None:
    result = runner.invoke(app, ["list", "--posts-dir", str(posts_dir)])
    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == [
        "2013-05-14  post  JavaScript array iteration methods",
        "2013-06-02  post  Object-oriented JavaScript",
    ]


def test_list_filters_layout(posts_dir: Path) -> None:
    result = runner.invoke(app, ["list", "--posts-dir", str(posts_dir), "--layout", "page"])
    assert result.exit_code == 0
    assert result.output == ""


def test_new_post(tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        ["new", "Closures in Loops", "--date", "2013-08-01", "--posts-dir", str(tmp_path)],
    )
    assert result.exit_code == 0, result.output
    path = Path(result.output.strip())
    assert path.name == "2013-08-01-closures-in-loops.md"
    assert path.read_text(encoding="utf-8") == (
        "---\nlayout: post\ntitle: Closures in Loops\n---\n"
    )

    lint = runner.invoke(app, ["lint", str(path)])
    assert lint.exit_code == 0, lint.output


def test_new_rejects_bad_date(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["new", "Closures", "--date", "yesterday", "--posts-dir", str(tmp_path)]
    )
    assert result.exit_code == 2
    assert list(tmp_path.iterdir()) == []


def test_list_missing_directory_is_not_created(tmp_path: Path) -> None:
    missing = tmp_path / "_psots"
    result = runner.invoke(app, ["list", "--posts-dir", str(missing)])
    assert result.exit_code == 2
    assert "does not exist" in result.output
    assert not missing.exists()


def test_list_mixed_dates(posts_dir: Path) -> None:
    (posts_dir / "2013-07-20-timed.md").write_text(
        "---\nlayout: post\ntitle: Timed\ndate: 2013-07-20 10:00:00 +0100\n---\n",
        encoding="utf-8",
    )
    (posts_dir / "2013-07-01-blank-date.md").write_text(
        "---\nlayout: post\ntitle: Blank date\ndate:\n---\n", encoding="utf-8"
    )

    result = runner.invoke(app, ["list", "--posts-dir", str(posts_dir)])

    assert result.exit_code == 0, result.output
    assert result.output.splitlines()[-2:] == [
        "2013-07-01  post  Blank date",
        "2013-07-20  post  Timed",
    ]


def test_lint_reports_undecodable_file(tmp_path: Path) -> None:
    (tmp_path / "2013-05-14-latin1.md").write_bytes(b"---\nlayout: post\ntitle: \xff\n---\n")
    result = runner.invoke(app, ["lint", str(tmp_path)])
    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "BD009 error" in result.output
