"""Icon asset pipeline."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from bs4 import BeautifulSoup

from wasmbundle.pipelines.base import (
    ATTR_HREF,
    AssetFile,
    Attrs,
    BuildConfig,
    PipelineError,
    replace_with_html,
    split_href,
    trunk_id_selector,
)

logger = logging.getLogger(__name__)


@dataclass
class IconOutput:
    """Result of an icon pipeline."""

    cfg: BuildConfig
    id: int
    file: str

    def finalize(self, dom: BeautifulSoup) -> None:
        """Replace the source link element with a link to the copied icon."""
        replace_with_html(
            dom,
            trunk_id_selector(self.id),
            f'<link rel="icon" href="{self.cfg.public_url}{self.file}"/>',
        )


class Icon:
    """Copies (and optionally hashes) an icon file into the staging dist dir."""

    TYPE_ICON: ClassVar[str] = "icon"

    def __init__(self, cfg: BuildConfig, html_dir: Path | str, attrs: Attrs, id: int) -> None:
        href = attrs.get(ATTR_HREF)
        if href is None:
            raise PipelineError(
                'required attr `href` missing for <link data-trunk rel="icon" .../> element'
            )
        self.id = id
        self.cfg = cfg
        self.asset = AssetFile(html_dir, split_href(href))

    async def run(self) -> IconOutput:
        """Copy the icon and return the pipeline output naming the written file."""
        logger.info("copying & hashing icon %s", self.asset.path)
        file = await asyncio.to_thread(
            self.asset.copy, self.cfg.staging_dist, self.cfg.filehash
        )
        logger.info("finished copying & hashing icon %s", self.asset.path)
        return IconOutput(cfg=self.cfg, id=self.id, file=file)