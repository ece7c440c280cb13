"""JS asset pipeline."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from bs4 import BeautifulSoup

from wasmbundle.pipelines.base import (
    ATTR_SRC,
    AssetFile,
    Attrs,
    BuildConfig,
    PipelineError,
    replace_with_html,
    split_href,
    trunk_script_id_selector,
)

logger = logging.getLogger(__name__)


def attrs_to_string(attrs: Attrs) -> str:
    """Render attributes as ``key="value"`` pairs separated by spaces."""
    return " ".join(f'{key}="{value}"' for key, value in attrs.items())


@dataclass
class JsOutput:
    """Result of a JS pipeline."""

    cfg: BuildConfig
    id: int
    file: str
    attrs: str

    def finalize(self, dom: BeautifulSoup) -> None:
        """Replace the source script element with one loading the copied file."""
        replace_with_html(
            dom,
            trunk_script_id_selector(self.id),
            f'<script {self.attrs} src="{self.cfg.public_url}{self.file}"/>',
        )


class Js:
    """Copies (and optionally hashes) a script into the staging dist dir."""

    def __init__(self, cfg: BuildConfig, html_dir: Path | str, attrs: Attrs, id: int) -> None:
        src = attrs.get(ATTR_SRC)
        if src is None:
            raise PipelineError("required attr `src` missing for <script data-trunk .../> element")
        self.id = id
        self.cfg = cfg
        self.asset = AssetFile(html_dir, split_href(src))
        self.attrs: Attrs = {
            key: value
            for key, value in attrs.items()
            if key != "src" and not key.startswith("data-trunk")
        }

    async def run(self) -> JsOutput:
        """Copy the script and return the pipeline output naming the written file."""
        logger.info("copying & hashing js %s", self.asset.path)
        file = await asyncio.to_thread(
            self.asset.copy, self.cfg.staging_dist, self.cfg.filehash
        )
        logger.info("finished copying & hashing js %s", self.asset.path)
        return JsOutput(
            cfg=self.cfg, id=self.id, file=file, attrs=attrs_to_string(self.attrs)
        )