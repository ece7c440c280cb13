# wasmbundle

Building blocks for bundling a WebAssembly web application from a source
`index.html`.

The source HTML marks its assets with `data-trunk` elements. Each element is
handled by an asset pipeline. The pipeline copies, hashes or inlines the asset
into a staging directory. It then rewrites the element in the final document,
which is parsed with BeautifulSoup.

## What is inside

- **Shared pieces** (`wasmbundle.pipelines.base`):
  - `BuildConfig` holds the staging directory, the public URL, file hashing and
    related options. `ToolVersions` holds requested tool versions.
  - `AssetFile` validates a file on disk. `copy(to_dir, with_hash)` writes it
    into a directory and returns the written name. With hashing on, the name is
    `<stem>-<hex hash>.<ext>`. `read_to_string()` reads it as UTF-8.
  - `content_hash` computes a 64-bit hash of bytes. `split_href` turns a
    slash-separated href into a path.
  - DOM helpers: `trunk_id_selector`, `trunk_script_id_selector`,
    `replace_with_html`, `remove_nodes` and `append_html`.
  - Failures raise `PipelineError`.
- **Asset pipelines** (`wasmbundle.pipelines`). Each pipeline is built from a
  config, the HTML directory, the element's attributes and an ID. Its
  `async run()` returns an output object, and the output's `finalize(dom)`
  rewrites the document.
  - `copy_file.CopyFile` copies a file unhashed and removes its element.
  - `copy_dir.CopyDir` copies a directory and removes its element. An optional
    `data-target-path` must be relative and must not contain `..`.
  - `css.Css` and `icon.Icon` copy a file, hashed when `filehash` is on. They
    replace the element with a stylesheet or icon link under `public_url`.
  - `js.Js` does the same for `<script data-trunk>` elements. It keeps the
    remaining attributes, except `src` and anything starting with
    `data-trunk`.
  - `inline.Inline` pastes HTML or SVG as it is. It wraps CSS in `<style>` and
    JS in `<script>`. `ContentType` chooses the kind from the `type` attribute
    or the file extension.
- **Archives** (`wasmbundle.archive`): `Archive.tar_gz`, `Archive.zip` and
  `Archive.plain` open a release archive. `extract_file(file, target)` copies
  one file out of it, ignoring the archive's top-level folder. It keeps the
  file's permissions where the platform supports them. A plain file is copied
  as-is and made executable. Failures raise `ArchiveError`. An `Archive` is a
  context manager.
- **Dev-server proxies** (`wasmbundle.proxy`): `ProxyHandlerHttp` and
  `ProxyHandlerWebSocket` register routes on an `aiohttp.web.Application` and
  forward requests or WebSocket messages to a backend. `make_outbound_uri`
  builds the backend address.

## Examples

Building a backend URL for a proxied request:

```python
from wasmbundle.proxy import make_outbound_uri

make_outbound_uri("https://backend/sub", "http://localhost/auth")
# "https://backend/sub/auth"
make_outbound_uri("https://backend/", "http://localhost/auth?user=user")
# "https://backend/auth?user=user"
```

Running a CSS pipeline and rewriting the document:

```python
import asyncio
from bs4 import BeautifulSoup
from wasmbundle.pipelines.base import BuildConfig
from wasmbundle.pipelines.css import Css

cfg = BuildConfig(staging_dist="dist", public_url="/")
dom = BeautifulSoup(
    '<html><head><link data-trunk rel="css" href="style.css" data-trunk-id="0"/>'
    "</head></html>",
    "html.parser",
)
output = asyncio.run(Css(cfg, "site", {"href": "style.css"}, 0).run())
output.finalize(dom)  # the element becomes <link rel="stylesheet" href="/style-<hash>.css"/>
```

Choosing how inlined content is embedded:

```python
from wasmbundle.pipelines.inline import ContentType

ContentType.parse("css")                  # ContentType.CSS
ContentType.from_attr_or_ext(None, "js")  # ContentType.JS, from the extension
```

Proxying an API prefix in an aiohttp application:

```python
from aiohttp import web
from wasmbundle.proxy import ProxyHandlerHttp

app = ProxyHandlerHttp("http://localhost:9000/api").register(web.Application())
web.run_app(app, port=8080)
```

## What it does not do

- It does not compile Sass or Tailwind stylesheets. It does not build Rust
  crates or run `wasm-bindgen` or `wasm-opt`. It does not download external
  tools. `ToolVersions` only records versions.
- It does not read a source `index.html` and drive the pipelines itself. The
  caller assigns `data-trunk-id` values, constructs the pipelines and calls
  `finalize` on their outputs.
- There is no command-line program, file watcher or static file server. The
  proxies are route handlers to add to your own aiohttp application.

## Requirements

Python 3.11 or later, with `aiohttp` and `beautifulsoup4`.