from __future__ import annotations

from blogdantic.fences import code_blocks


def test_backtick_block_with_language() -> None:
    text = "Intro\n\n```javascript\nvar a = 1;\n```\n"
    (block,) = code_blocks(text)
    assert block.fence == "```"
    assert block.language == "javascript"
    assert block.start_line == 3
    assert block.end_line == 5
    assert block.closed
    assert block.code == "var a = 1;"


def test_info_string_uses_first_word() -> None:
    (block,) = code_blocks("``` js title=example.js\nx\n```\n")
    assert block.language == "js"


def test_unclosed_block_runs_to_end() -> None:
    (block,) = code_blocks("```\nconsole.log(1);\nmore\n")
    assert not block.closed
    assert block.end_line is None
    assert block.language is None
    assert block.code == "console.log(1);\nmore"


def test_closing_fence_must_match_character_and_length() -> None:
    text = "````js\n```\n~~~~\n````\n"
    (block,) = code_blocks(text)
    assert block.end_line == 4
    assert block.code == "```\n~~~~"


def test_closing_fence_may_be_longer() -> None:
    (block,) = code_blocks("~~~\ncode\n~~~~~\n")
    assert block.closed


def test_closing_fence_cannot_have_info_string() -> None:
    (block,) = code_blocks("```\ncode\n``` js\n")
    assert not block.closed


def test_indented_more_than_three_spaces_is_not_a_fence() -> None:
    assert code_blocks("    ```\n    code\n    ```\n") == []


def test_backtick_in_info_string_is_inline_code() -> None:
    assert code_blocks("``` `not a fence`\n") == []


def test_multiple_blocks_and_offset() -> None:
    text = "```js\na\n```\n\n~~~ruby\nb\n~~~\n"
    blocks = code_blocks(text, line_offset=10)
    assert [(block.language, block.start_line, block.end_line) for block in blocks] == [
        ("js", 11, 13),
        ("ruby", 15, 17),
    ]


def test_unicode_separators_stay_in_their_line() -> None:
    text = "a b\x1cc\n\n```js\nx\n```\n"
    (block,) = code_blocks(text)
    assert (block.start_line, block.end_line) == (3, 5)


def test_crlf_fences() -> None:
    (block,) = code_blocks("```js\r\nx\r\n```\r\n")
    assert block.closed
    assert block.code == "x"
