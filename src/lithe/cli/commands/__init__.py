"""CLI commands"""

from .blocks import blocks_command
from .cache import cache_clear_command
from .render import render_command

__all__ = ["blocks_command", "cache_clear_command", "render_command"]
