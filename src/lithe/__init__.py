"""lithe - literate documents to HTML

Parses Markdown prose interleaved with knitr-style code chunks, splices in
included files, optionally evaluates chunks through a caller-supplied
evaluator, and renders one HTML page.
"""

from lithe._version import __version__
from lithe.ast import CodeBlock, Document, IncludeDirective, Parser, ProseBlock, parse, parse_file
from lithe.build import build
from lithe.compiler import RenderedDocument, Renderer, SubprocessEvaluator, render
from lithe.config import RenderOptions, resolve_options

__all__ = [
    "__version__",
    "CodeBlock",
    "Document",
    "IncludeDirective",
    "Parser",
    "ProseBlock",
    "parse",
    "parse_file",
    "build",
    "RenderedDocument",
    "Renderer",
    "SubprocessEvaluator",
    "render",
    "RenderOptions",
    "resolve_options",
]
