"""Inline asset pipeline."""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from bs4 import BeautifulSoup

from wasmbundle.pipelines.base import (
    ATTR_HREF,
    ATTR_TYPE,
    AssetFile,
    Attrs,
    PipelineError,
    replace_with_html,
    split_href,
    trunk_id_selector,
)

logger = logging.getLogger(__name__)


class ContentType(enum.Enum):
    """How inlined file content is inserted into the output document."""

    HTML = "html"
    SVG = "svg"
    CSS = "css"
    JS = "js"

    @classmethod
    def parse(cls, value: str) -> ContentType:
        """Parse a lowercase content type name."""
        try:
            return cls(value)
        except ValueError:
            raise PipelineError(
                f'unknown `type="{value}"` value for <link data-trunk rel="inline" .../> attr; '
                "please ensure the value is lowercase and is a supported content type"
            ) from None

    @classmethod
    def from_attr_or_ext(cls, attr: str | None, ext: str | None) -> ContentType:
        """Use the ``type`` attribute if given, otherwise infer from the file extension."""
        if attr is not None:
            return cls.parse(attr)
        if ext is not None:
            return cls.parse(ext)
        raise PipelineError(
            'unknown type value for <link data-trunk rel="inline" .../> attr; please ensure '
            "the value is lowercase and is a supported content type"
        )


@dataclass
class InlineOutput:
    """Result of an inline pipeline."""

    id: int
    content: str
    content_type: ContentType

    def finalize(self, dom: BeautifulSoup) -> None:
        """Replace the source link element with the file's content."""
        if self.content_type is ContentType.CSS:
            html = f'<style type="text/css">{self.content}</style>'
        elif self.content_type is ContentType.JS:
            html = f"<script>{self.content}</script>"
        else:
            html = self.content
        replace_with_html(dom, trunk_id_selector(self.id), html)


class Inline:
    """Reads a file whose content is pasted into the output document."""

    TYPE_INLINE: ClassVar[str] = "inline"

    def __init__(self, html_dir: Path | str, attrs: Attrs, id: int) -> None:
        href = attrs.get(ATTR_HREF)
        if href is None:
            raise PipelineError(
                'required attr `href` missing for <link data-trunk rel="inline" .../> element'
            )
        self.id = id
        self.asset = AssetFile(html_dir, split_href(href))
        self.content_type = ContentType.from_attr_or_ext(attrs.get(ATTR_TYPE), self.asset.ext)

    async def run(self) -> InlineOutput:
        """Read the file content and return the pipeline output."""
        logger.info("reading file content %s", self.asset.path)
        content = await asyncio.to_thread(self.asset.read_to_string)
        logger.info("finished reading file content %s", self.asset.path)
        return InlineOutput(id=self.id, content=content, content_type=self.content_type)