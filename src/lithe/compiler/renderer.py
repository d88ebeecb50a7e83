"""Renderer - turns a parsed Document into a RenderedDocument."""

from __future__ import annotations

import html
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

from markdown_it import MarkdownIt

from lithe.ast.spec import CodeBlock, Document, IncludeDirective, ProseBlock
from lithe.compiler.cache import CacheEntry, FragmentCache, compute_fingerprint
from lithe.compiler.evaluator import EvalContext, Evaluator
from lithe.compiler.resolver import Resolver
from lithe.compiler.spec import CodeFragment, Fragment, ProseFragment, RenderedDocument
from lithe.config import RenderOptions
from lithe.exceptions import CacheMismatchError, ExecutionError, ExecutionFailureError

log = logging.getLogger(__name__)

# Math spans are swapped for placeholders so Markdown emphasis rules
# cannot touch subscripts like $y_i$ before MathJax sees them.
DISPLAY_MATH = re.compile(r"\$\$(.+?)\$\$", re.DOTALL)
INLINE_MATH = re.compile(r"(?<![\\$])\$(?![\s$])([^\n$]+?)(?<!\s)\$(?!\d)")
PLACEHOLDER = "LITHEMATH{}X"
PLACEHOLDER_RE = re.compile(r"LITHEMATH(\d+)X")


def make_markdown() -> MarkdownIt:
    return MarkdownIt("commonmark", {"html": True}).enable("table")


class Renderer:
    """Renders Documents. Holds no per-document state between passes
    except the fragment caches, which are keyed by cache directory."""

    def __init__(
        self,
        evaluator: Optional[Evaluator] = None,
        markdown: Optional[MarkdownIt] = None,
    ):
        self.evaluator = evaluator
        self.markdown = markdown or make_markdown()
        self._caches: Dict[Path, FragmentCache] = {}

    def render(
        self, document: Document, options: Optional[RenderOptions] = None
    ) -> RenderedDocument:
        """Render every block of `document` in order.

        Raises:
            MissingFileError: An include does not resolve to a readable file.
            ExecutionFailureError: The evaluator failed on a chunk.
        """
        options = options or RenderOptions()
        resolver = Resolver(document.base_dir)
        fragments: List[Fragment] = []

        for block in document.blocks:
            if isinstance(block, ProseBlock):
                fragments.append(ProseFragment(html=self._render_prose(block.text, options)))
            elif isinstance(block, IncludeDirective):
                spliced = resolver.splice(block)
                fragments.append(
                    self._render_code(spliced, document, options, source=block.path)
                )
            else:
                fragments.append(self._render_code(block, document, options))

        log.info("Rendered %d fragments for %s", len(fragments), document.title)
        return RenderedDocument(
            fragments=tuple(fragments),
            title=document.title,
            meta=dict(document.meta),
            code_folding=options.code_folding,
        )

    def cache_for(self, document: Document, options: RenderOptions) -> FragmentCache:
        root = (document.base_dir / options.cache_dir).resolve()
        cache = self._caches.get(root)
        if cache is None:
            cache = self._caches.setdefault(root, FragmentCache(root))
        return cache

    def _render_prose(self, text: str, options: RenderOptions) -> str:
        if not options.markup:
            return text

        spans: List[str] = []

        def stash(match: re.Match[str]) -> str:
            spans.append(match.group(0))
            return PLACEHOLDER.format(len(spans) - 1)

        protected = DISPLAY_MATH.sub(stash, text)
        protected = INLINE_MATH.sub(stash, protected)
        rendered = self.markdown.render(protected)

        def restore(match: re.Match[str]) -> str:
            return html.escape(spans[int(match.group(1))], quote=False)

        return PLACEHOLDER_RE.sub(restore, rendered)

    def _render_code(
        self,
        block: CodeBlock,
        document: Document,
        options: RenderOptions,
        source: str = "",
    ) -> CodeFragment:
        echo = bool(block.options.get("echo", options.echo))
        output = ""

        if block.execute:
            if self.evaluator is None:
                log.debug("No evaluator; showing chunk %s without output", block.label)
            else:
                output = self._evaluate(block, document, options)

        if block.options.get("include") is False:
            # knitr include=FALSE: run the chunk, show nothing
            echo, output = False, ""

        return CodeFragment(
            language=block.language,
            code=block.code,
            label=block.label or "",
            output=output,
            echo=echo,
            source=source,
        )

    def _engine_identity(self, language: str) -> str:
        name = type(self.evaluator).__qualname__
        identity = getattr(self.evaluator, "identity", None)
        if callable(identity):
            return f"{name}:{identity(language)}"
        return name

    def _evaluate(
        self, block: CodeBlock, document: Document, options: RenderOptions
    ) -> str:
        assert self.evaluator is not None
        label = block.label or f"line-{block.line}"

        comment = block.options.get("comment", options.comment)
        comment = "" if comment is None else str(comment)
        relevant = dict(
            options.fingerprint_values(),
            comment=comment,
            engine=self._engine_identity(block.language),
        )
        fingerprint = compute_fingerprint(block.code, block.language, relevant)

        use_cache = bool(block.options.get("cache", options.cache))
        cache = self.cache_for(document, options) if use_cache else None

        if cache is not None:
            try:
                cached = cache.lookup(label, fingerprint)
            except CacheMismatchError as e:
                log.info("%s; recomputing", e)
                cache.evict(label)
                cached = None
            if cached is not None:
                return cached

        context = EvalContext(language=block.language, label=label, digits=options.digits)
        try:
            raw = self.evaluator.evaluate(block.code, context)
        except ExecutionError as e:
            reason = str(e)
            if e.stderr.strip():
                reason = f"{reason}: {e.stderr.strip().splitlines()[-1]}"
            raise ExecutionFailureError(reason, label=label) from e

        output = format_output(raw, comment)

        if cache is not None:
            cache.store(
                CacheEntry(
                    label=label,
                    fingerprint=fingerprint,
                    language=block.language,
                    code=block.code,
                    options=relevant,
                    output=output,
                )
            )
        return output


def format_output(raw: str, comment: str) -> str:
    """Prefix each output line with the comment marker."""
    text = raw.rstrip("\n")
    if not text:
        return ""
    if not comment:
        return text
    return "\n".join(f"{comment} {line}" if line else comment for line in text.split("\n"))


def render(
    document: Document,
    options: Optional[RenderOptions] = None,
    evaluator: Optional[Evaluator] = None,
) -> RenderedDocument:
    """Render a Document with a one-off Renderer."""
    return Renderer(evaluator=evaluator).render(document, options)
