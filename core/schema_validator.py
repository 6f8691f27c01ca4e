"""Type checking for flat parameter mappings described by a schema module.

A schema module declares ``REQUIRED_PARAMS`` and ``OPTIONAL_PARAMS`` (name to
type) plus ``DEFAULTS`` (name to value). Validation merges defaults under the
given params, coerces values to their declared types and rejects or warns
about keys the schema does not know.
"""

from __future__ import annotations

import warnings
from types import ModuleType
from typing import Any, Mapping


class SchemaValidationError(ValueError):
    """Raised when params fail schema validation."""


# YAML writes ``-50.0`` as ``-50``; ints widen to float, nothing else does.
_WIDENING: dict[type[Any], tuple[type[Any], ...]] = {float: (int,)}


def coerce_param(key: str, value: Any, expected_type: type[Any]) -> Any:
    """Return ``value`` as ``expected_type``.

    Exact type matches only, so ``True`` never passes for an int field.
    """
    actual = type(value)
    if actual is expected_type:
        return value
    if actual in _WIDENING.get(expected_type, ()):
        return expected_type(value)
    raise SchemaValidationError(
        f"Parameter '{key}' expected {expected_type.__name__}, got {actual.__name__}."
    )


def _schema_tables(
    schema_module: ModuleType | Any, schema_name: str
) -> tuple[Mapping[str, type[Any]], Mapping[str, Any], Mapping[str, type[Any]]]:
    tables = (
        getattr(schema_module, "REQUIRED_PARAMS", {}),
        getattr(schema_module, "DEFAULTS", {}),
        getattr(schema_module, "OPTIONAL_PARAMS", {}),
    )
    if not all(isinstance(table, Mapping) for table in tables):
        raise SchemaValidationError(
            f"Schema '{schema_name}' must define REQUIRED_PARAMS, DEFAULTS, OPTIONAL_PARAMS mappings."
        )
    return tables


def validate_params(
    params: Mapping[str, Any],
    schema_module: ModuleType | Any,
    schema_name: str,
    strict: bool = True,
) -> dict[str, Any]:
    """Merge defaults under ``params`` and type-check the result.

    Unknown keys raise when ``strict`` and are warned about and dropped
    otherwise.
    """
    required, defaults, optional = _schema_tables(schema_module, schema_name)

    merged = {**defaults, **params}
    missing = [key for key in required if key not in merged]
    if missing:
        raise SchemaValidationError(f"Schema '{schema_name}' missing required parameter(s) {missing}.")

    declared = {**optional, **required}
    unknown = [key for key in merged if key not in declared and key not in defaults]
    if unknown:
        message = f"Unknown parameter(s) {unknown} for '{schema_name}'."
        if strict:
            raise SchemaValidationError(message)
        warnings.warn(message, stacklevel=2)

    return {
        key: coerce_param(key, value, declared[key]) if key in declared else value
        for key, value in merged.items()
        if key not in unknown
    }
