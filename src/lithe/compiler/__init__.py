"""Lithe compiler - resolves includes, evaluates chunks and renders HTML."""

from lithe.compiler.cache import CacheEntry, FragmentCache, compute_fingerprint
from lithe.compiler.evaluator import EvalContext, Evaluator, SubprocessEvaluator
from lithe.compiler.renderer import Renderer, render
from lithe.compiler.resolver import Resolver
from lithe.compiler.spec import CodeFragment, ProseFragment, RenderedDocument

__all__ = [
    "CacheEntry",
    "FragmentCache",
    "compute_fingerprint",
    "EvalContext",
    "Evaluator",
    "SubprocessEvaluator",
    "Renderer",
    "render",
    "Resolver",
    "CodeFragment",
    "ProseFragment",
    "RenderedDocument",
]
