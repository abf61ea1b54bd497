"""Project settings for a blog checkout.

Settings live in a small YAML file (``blogdantic.yml`` by default) next to the
site sources::

    posts_dir: _posts
    layouts: [post, page]
    require_language: true
    disabled_rules: [BD007]
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "blogdantic.yml"


class BlogSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    posts_dir: Path = Path("_posts")
    layouts: List[str] = Field(default_factory=list)
    default_layout: str = "post"
    require_language: bool = True
    disabled_rules: List[str] = Field(default_factory=list)

    def rule_enabled(self, code: str) -> bool:
        return code.upper() not in {rule.upper() for rule in self.disabled_rules}


def load_settings(path: Optional[Path | str] = None) -> BlogSettings:
    """Load settings from ``path``, or from ``blogdantic.yml`` when present.

    A missing default file yields the defaults; a missing explicit file is an
    error.
    """
    explicit = path is not None
    target = Path(path) if explicit else Path.cwd() / DEFAULT_CONFIG_FILE
    if not target.exists():
        if explicit:
            raise ConfigError(f"Config file {target} does not exist")
        return BlogSettings()

    try:
        with target.open("r", encoding="utf-8") as fh:
            payload = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file {target} is not valid YAML: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Config file {target} did not produce a mapping")

    try:
        settings = BlogSettings.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings in {target}: {exc}") from exc
    logger.debug("Loaded settings from %s", target)
    return settings
