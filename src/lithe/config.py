"""Configuration for lithe renders.

Two layers:
- RenderOptions: the frozen option store read by the renderer
- ProjectConfig: optional lithe.yaml with option defaults and evaluator engines

Precedence (lowest to highest): built-in defaults, lithe.yaml options,
front matter options, caller overrides.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from lithe.exceptions import ConfigError

PROJECT_CONFIG_NAME = "lithe.yaml"


class RenderOptions(BaseModel):
    """Document-level render options. Immutable once built."""

    model_config = {"frozen": True, "populate_by_name": True, "extra": "forbid"}

    cache: bool = Field(default=False, description="Reuse evaluated chunk output")
    digits: int = Field(
        default=7, ge=1, le=22, description="Numeric display precision"
    )
    code_folding: Literal["none", "show", "hide"] = Field(
        default="none",
        alias="codeFoldingDefault",
        description="Initial visibility of code blocks",
    )
    comment: str = Field(
        default="##",
        alias="commentMarker",
        description="Prefix for each echoed output line",
    )
    echo: bool = Field(default=True, description="Show chunk source")
    cache_dir: str = Field(
        default=".lithe_cache", description="Fragment cache directory"
    )
    markup: bool = Field(default=True, description="Translate prose Markdown")

    @field_validator("comment", mode="before")
    @classmethod
    def _na_comment(cls, value: Any) -> Any:
        # knitr's comment=NA disables the prefix
        if value is None:
            return ""
        return value

    def fingerprint_values(self) -> dict[str, Any]:
        """Option values that change evaluated output."""
        return {"digits": self.digits, "comment": self.comment}


class ProjectConfig(BaseModel):
    """Optional lithe.yaml next to (or above) the source documents."""

    options: dict[str, Any] = Field(
        default_factory=dict, description="Default render options"
    )
    engines: dict[str, str] = Field(
        default_factory=dict, description="Language to evaluator command"
    )


def _alias_map() -> dict[str, str]:
    aliases = {}
    for name, info in RenderOptions.model_fields.items():
        if info.alias:
            aliases[info.alias] = name
    return aliases


def normalize_option_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Map aliases (codeFoldingDefault, ...) and dashed keys to field names."""
    aliases = _alias_map()
    result: dict[str, Any] = {}
    for key, value in data.items():
        key = aliases.get(key, key).replace("-", "_").replace(".", "_")
        result[key] = value
    return result


def resolve_options(*layers: dict[str, Any] | None) -> RenderOptions:
    """Merge option layers (later wins) into a frozen RenderOptions."""
    merged: dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged.update(normalize_option_keys(layer))

    try:
        return RenderOptions(**merged)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"invalid render options: {errors}") from e


def options_from_front_matter(meta: dict[str, Any]) -> dict[str, Any]:
    """Extract render options from document front matter.

    Reads the explicit `options:` mapping and the knitr-style
    `output: html_document: code_folding:` key.
    """
    options: dict[str, Any] = {}

    output = meta.get("output")
    if isinstance(output, dict):
        html = output.get("html_document")
        if isinstance(html, dict) and "code_folding" in html:
            options["code_folding"] = html["code_folding"]

    explicit = meta.get("options") or {}
    if not isinstance(explicit, dict):
        raise ConfigError("front matter 'options' must be a mapping")
    options.update(normalize_option_keys(explicit))
    return options


def find_project_config(start: Path) -> Path | None:
    """Find lithe.yaml in `start` or its parents."""
    start = start.resolve()
    for parent in [start] + list(start.parents):
        candidate = parent / PROJECT_CONFIG_NAME
        if candidate.is_file():
            return candidate
    return None


def load_project_config(path: Path) -> ProjectConfig:
    """Load lithe.yaml from path."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"{path}: invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")

    try:
        return ProjectConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"{path}: {e}") from e
