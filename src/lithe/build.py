"""Build a literate document file into an HTML file.

Ties the pieces together: parse, option resolution, render, write.
The output file is written only after the render pass succeeded.
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from lithe.ast.parser import Parser
from lithe.ast.spec import Document
from lithe.compiler.cache import FragmentCache
from lithe.compiler.evaluator import Evaluator, SubprocessEvaluator
from lithe.compiler.renderer import Renderer
from lithe.config import (
    ProjectConfig,
    RenderOptions,
    find_project_config,
    load_project_config,
    options_from_front_matter,
    resolve_options,
)
from lithe.exceptions import ConfigError

log = logging.getLogger(__name__)


@dataclass
class BuildResult:
    source: Path
    output: Optional[Path]
    html: str
    options: RenderOptions


def default_output_path(source: Path) -> Path:
    """chapter.Rmd -> chapter.html, next to the source."""
    return source.with_suffix(".html")


def load_project(source: Path) -> ProjectConfig:
    config_path = find_project_config(source.parent)
    if config_path is None:
        return ProjectConfig()
    log.info("Using project config %s", config_path)
    return load_project_config(config_path)


def options_for(
    document: Document,
    project: Optional[ProjectConfig] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> RenderOptions:
    """Resolve the frozen options for one document."""
    project = project or ProjectConfig()
    return resolve_options(
        project.options,
        options_from_front_matter(document.meta),
        overrides,
    )


def _output_mode(path: Path) -> int:
    # mkstemp files are 0600; keep an existing page's mode, else honour umask
    if path.exists():
        return stat.S_IMODE(path.stat().st_mode)
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_atomic(path: Path, text: str) -> None:
    """Write via a temporary sibling so a failed write leaves nothing behind."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.chmod(tmp, _output_mode(path))
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def build(
    source: Path,
    output: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
    evaluator: Optional[Evaluator] = None,
    engines: Optional[dict[str, str]] = None,
    write: bool = True,
) -> BuildResult:
    """Parse, render and (optionally) write one document.

    Args:
        source: Literate document to build.
        output: Destination; defaults to `<stem>.html` beside the source.
        overrides: Option values that win over config and front matter.
        evaluator: Chunk evaluator. Built from engines when omitted.
        engines: Extra `language -> command` engines (merged over lithe.yaml).
        write: When False, nothing is written to disk.
    """
    source = Path(source).resolve()
    project = load_project(source)
    document = Parser().parse_file(source)
    options = options_for(document, project, overrides)

    if evaluator is None:
        all_engines = {**project.engines, **(engines or {})}
        if all_engines:
            evaluator = SubprocessEvaluator(all_engines)

    rendered = Renderer(evaluator=evaluator).render(document, options)
    html = rendered.to_html()

    destination: Optional[Path] = None
    if write:
        destination = Path(output) if output is not None else default_output_path(source)
        if destination.resolve() == source:
            raise ConfigError(f"output would overwrite the source: {source}")
        write_atomic(destination, html)
        log.info("Wrote %s", destination)

    return BuildResult(source=source, output=destination, html=html, options=options)


def clear_cache(source: Path) -> Path:
    """Delete the fragment cache a document renders with. Returns its path."""
    source = Path(source).resolve()
    document = Parser().parse_file(source)
    options = options_for(document, load_project(source))
    root = (document.base_dir / options.cache_dir).resolve()
    FragmentCache(root).clear()
    log.info("Cleared cache %s", root)
    return root
