"""Asset pipelines, archive extraction and dev-server proxying for WebAssembly web apps."""

__version__ = "0.1.0"