import pytest
from bs4 import BeautifulSoup

from wasmbundle.pipelines.base import ATTR_HREF, BuildConfig, PipelineError
from wasmbundle.pipelines.copy_file import CopyFile, CopyFileOutput


@pytest.fixture
def setup(tmp_path):
    staging = tmp_path / "dist"
    staging.mkdir()
    cfg = BuildConfig(staging_dist=staging)
    asset_file = tmp_path / "test_file"
    asset_file.write_bytes(b"abc123")
    return tmp_path, cfg, asset_file


def test_err_new_missing_href(setup):
    tmp_path, cfg, _ = setup
    with pytest.raises(PipelineError):
        CopyFile(cfg, tmp_path, {}, 0)


def test_ok_new(setup):
    tmp_path, cfg, asset_file = setup
    cmd = CopyFile(cfg, tmp_path, {ATTR_HREF: "test_file"}, 0)
    assert cmd.asset.path == asset_file.resolve()


def test_err_new_missing_file(setup):
    tmp_path, cfg, _ = setup
    with pytest.raises(PipelineError):
        CopyFile(cfg, tmp_path, {ATTR_HREF: "no_such_file"}, 0)


@pytest.mark.asyncio
async def test_ok_run_basic_copy(setup):
    tmp_path, cfg, asset_file = setup
    copy_location = cfg.staging_dist / "test_file"
    cmd = CopyFile(cfg, tmp_path, {ATTR_HREF: "test_file"}, 0)

    out = await cmd.run()

    assert out == CopyFileOutput(0)
    assert asset_file.read_text() == copy_location.read_text()


@pytest.mark.asyncio
async def test_run_keeps_name_even_with_filehash(setup):
    tmp_path, cfg, _ = setup
    cfg.filehash = True
    await CopyFile(cfg, tmp_path, {ATTR_HREF: "test_file"}, 2).run()
    assert [p.name for p in cfg.staging_dist.iterdir()] == ["test_file"]


def test_finalize_removes_link():
    dom = BeautifulSoup(
        '<html><head><link data-trunk-id="4" rel="copy-file"/>'
        '<link data-trunk-id="5" rel="css"/></head></html>',
        "html.parser",
    )
    CopyFileOutput(4).finalize(dom)
    assert [link["data-trunk-id"] for link in dom.select("link")] == ["5"]