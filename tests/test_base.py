from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from wasmbundle.pipelines.base import (
    AssetFile,
    BuildConfig,
    PipelineError,
    PipelineStage,
    ToolVersions,
    append_html,
    content_hash,
    remove_nodes,
    replace_with_html,
    split_href,
    trunk_id_selector,
    trunk_script_id_selector,
)


def test_content_hash_known_value():
    assert content_hash(b"to be or not to be") == 1988685042348123509


def test_content_hash_is_deterministic_and_sensitive():
    assert content_hash(b"abc123") == content_hash(bytearray(b"abc123"))
    assert content_hash(b"abc123") != content_hash(b"abc124")
    assert 0 <= content_hash(b"x" * 100) < 2**64


def test_content_hash_length_matters():
    assert content_hash(b"") != content_hash(b"\x00")


def test_split_href_builds_path():
    assert split_href("a/b/c.css") == Path("a", "b", "c.css")
    assert split_href("/abs/x") == Path("abs", "x")


def test_selectors():
    assert trunk_id_selector(3) == 'link[data-trunk-id="3"]'
    assert trunk_script_id_selector(3) == 'script[data-trunk-id="3"]'


def test_pipeline_stage_values():
    assert PipelineStage("pre_build") is PipelineStage.PRE_BUILD
    assert PipelineStage("post_build") is PipelineStage.POST_BUILD
    assert PipelineStage("build") is PipelineStage.BUILD


def test_build_config_defaults(tmp_path):
    cfg = BuildConfig(staging_dist=str(tmp_path))
    assert cfg.staging_dist == tmp_path
    assert cfg.tools == ToolVersions()
    assert cfg.public_url == "/"


def test_asset_file_relative(tmp_path):
    (tmp_path / "style.css").write_text("body{}")
    asset = AssetFile(tmp_path, Path("style.css"))
    assert asset.path == (tmp_path / "style.css").resolve()
    assert asset.file_name == "style.css"
    assert asset.file_stem == "style"
    assert asset.ext == "css"


def test_asset_file_without_extension(tmp_path):
    (tmp_path / "test_file").write_bytes(b"abc123")
    asset = AssetFile(tmp_path, "test_file")
    assert asset.ext is None
    assert asset.file_stem == "test_file"


def test_asset_file_missing_raises(tmp_path):
    with pytest.raises(PipelineError):
        AssetFile(tmp_path, "nope.css")


def test_copy_without_hash(tmp_path):
    src = tmp_path / "src"
    dist = tmp_path / "dist"
    src.mkdir()
    dist.mkdir()
    (src / "app.js").write_bytes(b"abc123")
    name = AssetFile(src, "app.js").copy(dist, False)
    assert name == "app.js"
    assert (dist / "app.js").read_bytes() == b"abc123"


def test_copy_with_hash(tmp_path):
    src = tmp_path / "src"
    dist = tmp_path / "dist"
    src.mkdir()
    dist.mkdir()
    (src / "app.css").write_bytes(b"abc123")
    name = AssetFile(src, "app.css").copy(dist, True)
    assert name == f"app-{content_hash(b'abc123'):x}.css"
    assert (dist / name).read_bytes() == b"abc123"


def test_copy_into_missing_dir_raises(tmp_path):
    (tmp_path / "a.css").write_text("x")
    asset = AssetFile(tmp_path, "a.css")
    with pytest.raises(PipelineError):
        asset.copy(tmp_path / "missing", False)


def test_read_to_string(tmp_path):
    (tmp_path / "a.html").write_text("<p>hi</p>", encoding="utf-8")
    assert AssetFile(tmp_path, "a.html").read_to_string() == "<p>hi</p>"


def _dom():
    return BeautifulSoup(
        '<html><head><link data-trunk-id="0" rel="css"/>'
        '<link data-trunk-id="1" rel="icon"/></head><body><p>x</p></body></html>',
        "html.parser",
    )


def test_replace_with_html():
    dom = _dom()
    replace_with_html(dom, trunk_id_selector(0), '<link rel="stylesheet" href="/a.css"/>')
    assert dom.select(trunk_id_selector(0)) == []
    assert dom.select_one('link[rel="stylesheet"]')["href"] == "/a.css"
    assert len(dom.select(trunk_id_selector(1))) == 1


def test_replace_with_multiple_nodes_keeps_order():
    dom = _dom()
    replace_with_html(dom, trunk_id_selector(0), "<style>a</style><script>b</script>")
    head_tags = [tag.name for tag in dom.head.find_all(True)]
    assert head_tags == ["style", "script", "link"]


def test_remove_nodes():
    dom = _dom()
    remove_nodes(dom, trunk_id_selector(1))
    assert dom.select(trunk_id_selector(1)) == []
    assert len(dom.select("link")) == 1


def test_append_html():
    dom = _dom()
    append_html(dom, "html body", "<script>go()</script>")
    children = [tag.name for tag in dom.body.find_all(True)]
    assert children == ["p", "script"]
    assert dom.body.script.string == "go()"