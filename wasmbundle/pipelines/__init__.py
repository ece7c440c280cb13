"""Asset pipelines that copy, hash or inline data-trunk assets and rewrite the HTML."""