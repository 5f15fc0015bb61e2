"""Parser configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"", "0", "false", "no", "off"}


def _as_bool(option: str, value: Any) -> bool:
    """Accept a bool, or a string such as "yes" or "off"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise ValueError(f"Option '{option}' must be a boolean, got {value!r}")


@dataclass(frozen=True)
class ExpressionConfig:
    """Options for parsing expressions.

    Attributes:
        force_semicolon: Require ';' between statements. When False,
            whitespace alone also separates statements ("1 2" is two
            statements).
    """

    force_semicolon: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> ExpressionConfig:
        """Create config from a plain mapping, e.g. ``{"force_semicolon": True}``.

        Raises:
            ValueError: For keys that are not config options, or values
                that are not booleans.
        """
        if not data:
            return cls()

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(
                f"Unknown config option(s): {', '.join(sorted(unknown))}"
            )

        return cls(
            force_semicolon=_as_bool(
                "force_semicolon", data.get("force_semicolon", False)
            )
        )

    @classmethod
    def from_env(cls) -> ExpressionConfig:
        """Create config from environment variables.

        MATHEXPR_FORCE_SEMICOLON: 1/true/yes/on enables force_semicolon,
            0/false/no/off disables it.
        """
        raw = os.environ.get("MATHEXPR_FORCE_SEMICOLON", "")
        return cls(force_semicolon=_as_bool("MATHEXPR_FORCE_SEMICOLON", raw))

    @classmethod
    def from_file(cls, path: Path | str) -> ExpressionConfig:
        """Load config from a YAML file holding the option mapping."""
        with open(path) as f:
            data = yaml.safe_load(f)

        if data is not None and not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")

        return cls.from_mapping(data)

    @classmethod
    def coerce(
        cls, config: ExpressionConfig | Mapping[str, Any] | None
    ) -> ExpressionConfig:
        """Accept a config object, a mapping, or None."""
        if config is None:
            return cls()
        if isinstance(config, cls):
            return config
        return cls.from_mapping(config)
