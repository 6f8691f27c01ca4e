"""Configuration loading and validation for swarm simulation runs."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from core.schema_validator import SchemaValidationError, validate_params
from simulations.auv_swarm import config_schema


SIMULATION_NAME = "auv_swarm"
DEFAULT_CONFIG_PATH = Path(__file__).with_name("auv_swarm.yaml")


class ConfigValidationError(ValueError):
    """Raised when a runtime config fails validation."""


@dataclass(frozen=True)
class SwarmConfig:
    """Validated swarm configuration container."""

    num_agents: int
    seed: int
    tick_interval_ms: int
    min_x: float
    max_x: float
    min_y: float
    max_y: float
    boundary_margin: float
    spawn_extent: float
    min_speed: float
    max_speed: float
    safety_radius: float
    initial_route_probability: float
    min_initial_waypoints: int
    max_initial_waypoints: int
    websocket_host: str
    websocket_port: int

    @property
    def tick_interval(self) -> float:
        """Tick period in seconds."""
        return self.tick_interval_ms / 1000.0

    def get(self, key: str, default: Any = None) -> Any:
        return getattr(self, key, default)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def with_overrides(self, **overrides: Any) -> SwarmConfig:
        """Return a re-validated copy with ``overrides`` applied."""
        payload = self.to_dict()
        payload.update(overrides)
        return _validate_and_build(payload, strict=True)


class ConfigLoader:
    """Load and validate swarm config files (YAML or JSON)."""

    @staticmethod
    def load(path: str | Path, strict: bool = True) -> SwarmConfig:
        """Load a config from ``path``.

        Unknown keys raise in strict mode and only warn otherwise. Missing
        keys fall back to the schema defaults.
        """
        payload = _read_config_payload(path)
        if not isinstance(payload, Mapping):
            raise ConfigValidationError("Top-level config must be a mapping.")
        return _validate_and_build(payload, strict=strict)

    @staticmethod
    def defaults() -> SwarmConfig:
        return _validate_and_build({}, strict=True)


def _read_config_payload(path: str | Path) -> Any:
    """Read raw config payload from JSON or YAML file."""
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigValidationError(f"Config file not found: {config_path}")
    suffix = config_path.suffix.lower()
    content = config_path.read_text(encoding="utf-8")

    try:
        if suffix == ".json":
            return json.loads(content)
        if suffix in {".yaml", ".yml"}:
            return yaml.safe_load(content) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigValidationError(f"Failed to parse config '{config_path}': {exc}") from exc

    raise ConfigValidationError(f"Unsupported config extension: {suffix}")


def _validate_and_build(payload: Mapping[str, Any], strict: bool) -> SwarmConfig:
    """Validate raw mapping and build ``SwarmConfig``."""
    try:
        params = validate_params(
            params=dict(payload),
            schema_module=config_schema,
            schema_name=SIMULATION_NAME,
            strict=strict,
        )
    except SchemaValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc

    if params["num_agents"] < 0:
        raise ConfigValidationError("num_agents must be >= 0")
    if params["tick_interval_ms"] <= 0:
        raise ConfigValidationError("tick_interval_ms must be > 0")
    if not (params["min_x"] < params["max_x"] and params["min_y"] < params["max_y"]):
        raise ConfigValidationError("World bounds must satisfy min_x < max_x and min_y < max_y")
    if params["boundary_margin"] < 0:
        raise ConfigValidationError("boundary_margin must be >= 0")
    if not 0 < params["min_speed"] <= params["max_speed"]:
        raise ConfigValidationError("Speeds must satisfy 0 < min_speed <= max_speed")
    if params["safety_radius"] < 0:
        raise ConfigValidationError("safety_radius must be >= 0")
    if params["spawn_extent"] < 0:
        raise ConfigValidationError("spawn_extent must be >= 0")
    if not 0.0 <= params["initial_route_probability"] <= 1.0:
        raise ConfigValidationError("initial_route_probability must be in [0.0, 1.0]")
    if not 0 <= params["min_initial_waypoints"] <= params["max_initial_waypoints"]:
        raise ConfigValidationError(
            "Initial waypoint counts must satisfy 0 <= min_initial_waypoints <= max_initial_waypoints"
        )

    known = {item.name for item in fields(SwarmConfig)}
    return SwarmConfig(**{key: value for key, value in params.items() if key in known})
