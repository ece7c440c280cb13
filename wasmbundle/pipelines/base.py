"""Shared building blocks for asset pipelines: config, asset files and DOM helpers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path

from bs4 import BeautifulSoup

ATTR_INLINE = "data-inline"
ATTR_HREF = "href"
ATTR_SRC = "src"
ATTR_TYPE = "type"
ATTR_REL = "rel"
SNIPPETS_DIR = "snippets"
TRUNK_ID = "data-trunk-id"

Attrs = dict[str, str]

_MASK64 = (1 << 64) - 1
_HASH_PRIME = 0x6EED0E9DA4D94A4F
_HASH_SEEDS = (
    0x16F11FE89B0D677C,
    0xB480A793D8E6C86C,
    0x6FE2E5AAF078EBC9,
    0x14F994A4C5259381,
)


class PipelineError(Exception):
    """Raised when an asset pipeline cannot do its work."""


@dataclass
class ToolVersions:
    """Versions of external tools requested by the user; None means the default."""

    sass: str | None = None
    tailwindcss: str | None = None
    wasm_bindgen: str | None = None
    wasm_opt: str | None = None


@dataclass
class BuildConfig:
    """Runtime configuration shared by every pipeline of a build."""

    staging_dist: Path
    public_url: str = "/"
    filehash: bool = True
    release: bool = False
    tools: ToolVersions = field(default_factory=ToolVersions)
    inject_scripts: bool = True
    pattern_script: str | None = None
    pattern_preload: str | None = None
    pattern_params: dict[str, str] | None = None

    def __post_init__(self) -> None:
        self.staging_dist = Path(self.staging_dist)


class PipelineStage(enum.Enum):
    """A stage in the build process, used to decide when a hook runs."""

    PRE_BUILD = "pre_build"
    BUILD = "build"
    POST_BUILD = "post_build"


def _diffuse(value: int) -> int:
    value = (value * _HASH_PRIME) & _MASK64
    shift = value >> 60
    value ^= (value >> 32) >> shift
    return (value * _HASH_PRIME) & _MASK64


def content_hash(data: bytes) -> int:
    """Return the 64-bit SeaHash of ``data``."""
    data = bytes(data)
    lanes = list(_HASH_SEEDS)
    for block, offset in enumerate(range(0, len(data), 8)):
        lane = block % 4
        word = int.from_bytes(data[offset : offset + 8], "little")
        lanes[lane] = _diffuse(lanes[lane] ^ word)
    return _diffuse(lanes[0] ^ lanes[1] ^ lanes[2] ^ lanes[3] ^ len(data))


def split_href(href: str) -> Path:
    """Turn a slash separated href into a path built from its segments."""
    return Path(*href.split("/"))


class AssetFile:
    """A validated file on disk that a pipeline processes."""

    def __init__(self, rel_dir: Path | str, path: Path | str) -> None:
        path = Path(path)
        if not path.is_absolute():
            path = Path(rel_dir) / path
        try:
            resolved = path.resolve(strict=True)
        except OSError as err:
            raise PipelineError(f"error getting canonical path for {str(path)!r}") from err
        if not resolved.exists():
            raise PipelineError(f"target file does not appear to exist on disk {str(resolved)!r}")
        if not resolved.name:
            raise PipelineError(f"asset has no file name {str(resolved)!r}")
        if not resolved.stem:
            raise PipelineError(f"asset has no file name stem {str(resolved)!r}")
        self.path: Path = resolved
        self.file_name: str = resolved.name
        self.file_stem: str = resolved.stem
        self.ext: str | None = resolved.suffix[1:] if resolved.suffix else None

    def __repr__(self) -> str:
        return f"AssetFile({str(self.path)!r})"

    def copy(self, to_dir: Path | str, with_hash: bool) -> str:
        """Copy the file into ``to_dir`` and return the base name it was written under.

        With hashing enabled the content hash is placed in the name as a hex string.
        """
        try:
            data = self.path.read_bytes()
        except OSError as err:
            raise PipelineError(f"error reading file for copying {str(self.path)!r}") from err

        if with_hash:
            file_name = f"{self.file_stem}-{content_hash(data):x}.{self.ext or ''}"
        else:
            file_name = self.file_name

        file_path = Path(to_dir) / file_name
        try:
            file_path.write_bytes(data)
        except OSError as err:
            raise PipelineError(
                f"error copying file {str(self.path)!r} to {str(file_path)!r}"
            ) from err
        return file_name

    def read_to_string(self) -> str:
        """Read the whole file as UTF-8 text."""
        try:
            return self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as err:
            raise PipelineError(f"error reading file {str(self.path)!r} to string") from err


def trunk_id_selector(id: int) -> str:
    """CSS selector for a trunk link element with the given ID."""
    return f'link[{TRUNK_ID}="{id}"]'


def trunk_script_id_selector(id: int) -> str:
    """CSS selector for a trunk script element with the given ID."""
    return f'script[{TRUNK_ID}="{id}"]'


def _fragment(html: str) -> list:
    return list(BeautifulSoup(html, "html.parser").contents)


def replace_with_html(dom: BeautifulSoup, selector: str, html: str) -> None:
    """Replace every element matching ``selector`` with the parsed ``html``."""
    for node in dom.select(selector):
        for piece in _fragment(html):
            node.insert_before(piece)
        node.decompose()


def remove_nodes(dom: BeautifulSoup, selector: str) -> None:
    """Remove every element matching ``selector``."""
    for node in dom.select(selector):
        node.decompose()


def append_html(dom: BeautifulSoup, selector: str, html: str) -> None:
    """Append the parsed ``html`` as children of every element matching ``selector``."""
    for node in dom.select(selector):
        for piece in _fragment(html):
            node.append(piece)