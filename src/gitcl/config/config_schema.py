"""JSON Schema-based validation for git-cl YAML configuration.

This module validates the parsed ``.git-cl.yaml`` mapping against the JSON
Schema document shipped as package data under ``gitcl/assets/config-schema.json``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from jsonschema import Draft202012Validator, ValidationError
from jsonschema.exceptions import SchemaError

logger = logging.getLogger(__name__)

UNKNOWN_KEY_POLICIES = ("ignore", "warn", "error")


def get_default_schema_path() -> Path:
    """Brief: Resolve the default JSON Schema path for configuration.

    Inputs:
      - None.

    Outputs:
      - Path to the packaged ``gitcl/assets/config-schema.json`` when present,
        else ``assets/config-schema.json`` in the nearest ancestor that has one,
        else the packaged location.
    """

    here = Path(__file__).resolve()
    packaged = here.parents[1] / "assets" / "config-schema.json"
    if packaged.is_file():
        return packaged
    for ancestor in here.parents:
        candidate = ancestor / "assets" / "config-schema.json"
        if candidate.is_file():
            return candidate
    return packaged


def _load_schema(schema_path: Path) -> Dict[str, Any]:
    with schema_path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _format_errors(errors: List[ValidationError], *, config_path: Optional[str]) -> str:
    """Brief: Format jsonschema validation errors into a human-readable string.

    Inputs:
      - errors: List of jsonschema.ValidationError instances.
      - config_path: Optional path to the YAML config being validated.

    Outputs:
      - String suitable for display on stderr.
    """

    lines: List[str] = [f"Invalid configuration in {config_path or '<config dict>'}:"]
    for err in errors:
        instance_path = "/".join(str(p) for p in err.path) or "<root>"
        schema_path = "/".join(str(p) for p in err.schema_path)
        lines.append(f"- {instance_path}: {err.message} (schema: {schema_path})")
    return "\n".join(lines)


def validate_config(
    cfg: Dict[str, Any],
    *,
    schema_path: Optional[Path] = None,
    config_path: Optional[str] = None,
    unknown_keys: str = "warn",
) -> None:
    """Brief: Validate a parsed YAML configuration mapping against JSON Schema.

    Inputs:
      - cfg: Dict loaded from YAML (top-level configuration mapping).
      - schema_path: Optional explicit path to the JSON Schema file.
      - config_path: Optional YAML path, used only in error messages.
      - unknown_keys: Policy for keys the schema does not describe:
        "ignore", "warn" (default, log and continue) or "error".

    Outputs:
      - None on success.

    Raises:
      - ValueError: On any non-extra-property error, on extra properties when
        ``unknown_keys`` is "error", or when the schema cannot be loaded.

    Example:
      >>> validate_config({"changelog": {"include_prereleases": True}})
    """

    if unknown_keys not in UNKNOWN_KEY_POLICIES:
        raise ValueError(
            f"unknown_keys policy must be 'ignore', 'warn', or 'error', got {unknown_keys!r}"
        )

    effective_schema_path = schema_path or get_default_schema_path()
    if not effective_schema_path.is_file():
        logger.warning(
            "Configuration schema file %s not found; skipping JSON Schema validation",
            effective_schema_path,
        )
        return None

    try:
        schema = _load_schema(effective_schema_path)
        validator = Draft202012Validator(schema)
    except (OSError, json.JSONDecodeError, SchemaError) as exc:
        raise ValueError(
            f"Failed to load configuration schema at {effective_schema_path}: {exc}"
        ) from exc

    all_errors = sorted(validator.iter_errors(cfg), key=lambda e: list(e.path))
    if not all_errors:
        return None

    extra_errors = [e for e in all_errors if e.validator == "additionalProperties"]
    other_errors = [e for e in all_errors if e.validator != "additionalProperties"]

    if other_errors:
        raise ValueError(
            _format_errors(other_errors + extra_errors, config_path=config_path)
        )

    message = _format_errors(extra_errors, config_path=config_path)
    if unknown_keys == "warn":
        logger.warning(message)
    elif unknown_keys == "error":
        raise ValueError(message)
    return None
