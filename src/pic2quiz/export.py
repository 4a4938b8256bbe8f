"""Save generated study material to disk as text, Markdown or HTML."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Template
from markdown_it import MarkdownIt

HTML_SUFFIXES = {".html", ".htm"}

_PAGE_TEMPLATE = Template(
    """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{{ title }}</title>
<style>
body { font-family: system-ui, sans-serif; max-width: 48rem; margin: 2rem auto; line-height: 1.5; padding: 0 1rem; }
table { border-collapse: collapse; }
th, td { border: 1px solid #ccc; padding: 0.25rem 0.5rem; }
</style>
</head>
<body>
{{ body | safe }}
</body>
</html>
""",
    autoescape=True,
)


def build_markdown_it() -> MarkdownIt:
    # Model output is untrusted, so raw HTML stays escaped.
    return MarkdownIt("commonmark", options_update={"html": False}).enable(
        "table"
    )


def render_html(markdown_text: str, *, title: str = "Pic2Quiz") -> str:
    """Render Markdown into a standalone HTML page."""
    body = build_markdown_it().render(markdown_text or "")
    return _PAGE_TEMPLATE.render(title=title, body=body.rstrip())


def write_output(path: Path, text: str, *, title: str = "Pic2Quiz") -> Path:
    """Write ``text`` to ``path``; ``.html`` targets are rendered first."""
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    if target.suffix.lower() in HTML_SUFFIXES:
        payload = render_html(text, title=title)
    else:
        payload = text if text.endswith("\n") else text + "\n"
    target.write_text(payload, encoding="utf-8")
    return target
