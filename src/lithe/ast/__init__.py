"""Literate document AST: blocks and the parser that produces them."""

from lithe.ast.parser import Parser, parse, parse_file
from lithe.ast.spec import Block, CodeBlock, Document, IncludeDirective, ProseBlock

__all__ = [
    "Parser",
    "parse",
    "parse_file",
    "Block",
    "CodeBlock",
    "Document",
    "IncludeDirective",
    "ProseBlock",
]
