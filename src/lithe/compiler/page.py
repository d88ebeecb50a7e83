"""HTML page output for rendered documents."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from lithe.compiler.spec import CodeFragment, ProseFragment, RenderedDocument

TEMPLATES_DIR = Path(__file__).parent / "templates"
PAGE_TEMPLATE = "page.html.j2"


def _get_env() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "j2"]),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.tests["prose"] = lambda f: isinstance(f, ProseFragment)
    env.tests["code"] = lambda f: isinstance(f, CodeFragment)
    return env


def render_page(document: RenderedDocument) -> str:
    """Render a RenderedDocument to a standalone HTML page."""
    tmpl = _get_env().get_template(PAGE_TEMPLATE)
    return tmpl.render(
        title=document.title,
        author=document.meta.get("author"),
        fragments=document.fragments,
        code_folding=document.code_folding,
    )
