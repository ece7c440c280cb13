"""Copy-dir asset pipeline."""

from __future__ import annotations

import asyncio
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from bs4 import BeautifulSoup

from wasmbundle.pipelines.base import (
    ATTR_HREF,
    Attrs,
    BuildConfig,
    PipelineError,
    remove_nodes,
    split_href,
    trunk_id_selector,
)

logger = logging.getLogger(__name__)


def _copy_dir_recursive(source: Path, destination: Path) -> None:
    if not source.is_dir():
        raise PipelineError(f"directory can not be copied as it does not exist {str(source)!r}")
    try:
        shutil.copytree(source, destination, dirs_exist_ok=True)
    except (OSError, shutil.Error) as err:
        raise PipelineError(
            f"error copying directory {str(source)!r} to {str(destination)!r}"
        ) from err


@dataclass
class CopyDirOutput:
    """Result of a copy-dir pipeline."""

    id: int

    def finalize(self, dom: BeautifulSoup) -> None:
        """Remove the source link element from the document."""
        remove_nodes(dom, trunk_id_selector(self.id))


class CopyDir:
    """Copies a directory referenced by a link element into the staging dist dir."""

    TYPE_COPY_DIR: ClassVar[str] = "copy-dir"

    def __init__(self, cfg: BuildConfig, html_dir: Path | str, attrs: Attrs, id: int) -> None:
        href = attrs.get(ATTR_HREF)
        if href is None:
            raise PipelineError(
                'required attr `href` missing for <link data-trunk rel="copydir" .../> element'
            )
        path = split_href(href)
        if not path.is_absolute():
            path = Path(html_dir) / path
        target = attrs.get("data-target-path")

        self.id = id
        self.cfg = cfg
        self.path = path
        self.target_path = Path(target) if target is not None else None

    async def run(self) -> CopyDirOutput:
        """Copy the directory and return the pipeline output."""
        logger.info("copying directory %s", self.path)
        await asyncio.to_thread(self._copy)
        logger.info("finished copying directory %s", self.path)
        return CopyDirOutput(self.id)

    def _copy(self) -> None:
        try:
            canonical = self.path.resolve(strict=True)
        except OSError as err:
            raise PipelineError(
                f"error taking canonical path of directory {str(self.path)!r}"
            ) from err
        if not canonical.name:
            raise PipelineError(f"could not get directory name of dir {str(canonical)!r}")

        if self.target_path is not None:
            target = self.target_path
            if target.is_absolute() or ".." in target.parts:
                raise PipelineError(
                    f"Invalid data-target-path '{target}'. Must be a relative path without '..'."
                )
            dir_out = self.cfg.staging_dist / target
            try:
                dir_out.mkdir(parents=True, exist_ok=True)
            except OSError as err:
                raise PipelineError(f"error creating directory {str(dir_out)!r}") from err
        else:
            dir_out = self.cfg.staging_dist / canonical.name

        _copy_dir_recursive(canonical, dir_out)