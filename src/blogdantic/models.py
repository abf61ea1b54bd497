from __future__ import annotations

from datetime import date as Date
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from .fences import CodeBlock, code_blocks

JEKYLL_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M %z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
)


class Post(BaseModel):
    """A single blog entry.

    ``layout`` and ``title`` come from the front-matter, ``body`` is the
    Markdown that follows it. Any other front-matter keys (``tags``,
    ``permalink``...) are kept as extra fields and written back untouched.
    """

    model_config = ConfigDict(extra="allow")

    layout: str
    title: str
    body: str = ""
    date: Optional[Union[datetime, Date]] = None

    @field_validator("layout", "title")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must be a non-empty string")
        return value

    @field_validator("date", mode="before")
    @classmethod
    def _jekyll_timestamp(cls, value: object) -> object:
        # YAML only resolves "+01:00" offsets; Jekyll also writes "+0100"
        if isinstance(value, str):
            for fmt in JEKYLL_DATE_FORMATS:
                try:
                    parsed = datetime.strptime(value.strip(), fmt)
                except ValueError:
                    continue
                return parsed if "%H" in fmt else parsed.date()
        return value

    @property
    def published(self) -> Optional[Date]:
        """Calendar day of ``date``; Jekyll timestamps keep their time on disk."""
        if isinstance(self.date, datetime):
            return self.date.date()
        return self.date

    @property
    def code_blocks(self) -> List[CodeBlock]:
        return code_blocks(self.body)

    @property
    def languages(self) -> List[str]:
        return sorted({block.language for block in self.code_blocks if block.language})
