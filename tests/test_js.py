import pytest
from bs4 import BeautifulSoup

from wasmbundle.pipelines.base import BuildConfig, PipelineError, content_hash
from wasmbundle.pipelines.js import Js, JsOutput, attrs_to_string

SCRIPT = b"console.log('hi');\n"


@pytest.fixture
def site(tmp_path):
    html_dir = tmp_path / "site"
    html_dir.mkdir()
    (html_dir / "app.js").write_bytes(SCRIPT)
    dist = tmp_path / "dist"
    dist.mkdir()
    return html_dir, dist


def test_attrs_to_string():
    assert attrs_to_string({"type": "module", "defer": ""}) == 'type="module" defer=""'


def test_attrs_to_string_empty():
    assert attrs_to_string({}) == ""


def test_missing_src_raises(site):
    html_dir, dist = site
    with pytest.raises(PipelineError):
        Js(BuildConfig(staging_dist=dist), html_dir, {"type": "module"}, 0)


def test_src_and_trunk_attrs_are_dropped(site):
    html_dir, dist = site
    attrs = {"src": "app.js", "data-trunk": "", "data-trunk-id": "0", "type": "module"}
    pipeline = Js(BuildConfig(staging_dist=dist), html_dir, attrs, 0)
    assert pipeline.attrs == {"type": "module"}


@pytest.mark.asyncio
async def test_run_hashed(site):
    html_dir, dist = site
    attrs = {"src": "app.js", "data-trunk": "", "type": "module"}
    out = await Js(BuildConfig(staging_dist=dist), html_dir, attrs, 2).run()
    assert out.id == 2
    assert out.file == f"app-{content_hash(SCRIPT):x}.js"
    assert out.attrs == 'type="module"'
    assert (dist / out.file).read_bytes() == SCRIPT


@pytest.mark.asyncio
async def test_run_unhashed(site):
    html_dir, dist = site
    cfg = BuildConfig(staging_dist=dist, filehash=False)
    out = await Js(cfg, html_dir, {"src": "app.js"}, 0).run()
    assert out.file == "app.js"
    assert (dist / "app.js").read_bytes() == SCRIPT


def test_finalize_replaces_script(tmp_path):
    dom = BeautifulSoup(
        '<html><head></head><body><script data-trunk src="app.js" data-trunk-id="1">'
        "</script></body></html>",
        "html.parser",
    )
    cfg = BuildConfig(staging_dist=tmp_path, public_url="/static/")
    JsOutput(cfg=cfg, id=1, file="app-1.js", attrs='type="module"').finalize(dom)
    scripts = dom.select("script")
    assert len(scripts) == 1
    assert scripts[0]["src"] == "/static/app-1.js"
    assert scripts[0]["type"] == "module"
    assert not scripts[0].has_attr("data-trunk-id")