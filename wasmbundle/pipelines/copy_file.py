"""Copy-file asset pipeline."""

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
    remove_nodes,
    split_href,
    trunk_id_selector,
)

logger = logging.getLogger(__name__)


@dataclass
class CopyFileOutput:
    """Result of a copy-file pipeline."""

    id: int

    def finalize(self, dom: BeautifulSoup) -> None:
        """Remove the source link element from the document."""
        remove_nodes(dom, trunk_id_selector(self.id))


class CopyFile:
    """Copies a single file referenced by a link element into the staging dist dir."""

    TYPE_COPY_FILE: ClassVar[str] = "copy-file"

    def __init__(self, cfg: BuildConfig, html_dir: Path | str, attrs: Attrs, id: int) -> None:
        href = attrs.get(ATTR_HREF)
        if href is None:
            raise PipelineError(
                'required attr `href` missing for <link data-trunk rel="copyfile" .../> element'
            )
        self.id = id
        self.cfg = cfg
        self.asset = AssetFile(html_dir, split_href(href))

    async def run(self) -> CopyFileOutput:
        """Copy the file unhashed and return the pipeline output."""
        logger.info("copying file %s", self.asset.path)
        await asyncio.to_thread(self.asset.copy, self.cfg.staging_dist, False)
        logger.info("finished copying file %s", self.asset.path)
        return CopyFileOutput(self.id)