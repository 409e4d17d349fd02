from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..services.hashing import DEFAULT_ITERATIONS

"""Config loader.

Responsibilities:
- Load YAML config (default config/import.yml)
- Validate it against config_schema.json (unknown keys rejected)
- Apply defaults (table=users, dedupe_within_batch=true, PBKDF2 iterations)
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection fallback; environment variables take precedence."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None

    @classmethod
    def from_mapping(cls, raw: dict[str, Any] | None) -> DatabaseConfig:
        raw = raw or {}
        return cls(**{k: raw.get(k) for k in ("host", "port", "user", "password", "database", "dsn")})


@dataclass(frozen=True)
class ImportConfig:
    database: DatabaseConfig
    table: str = "users"
    dedupe_within_batch: bool = True
    hash_iterations: int = DEFAULT_ITERATIONS


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Check config data against config_schema.json.

    Raises:
        ConfigError: the schema file is missing or not JSON, or the data
            violates it (missing keys, wrong types, unknown keys)
    """
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e

    try:
        jsonschema.validate(data, schema)
    except ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path)
        detail = f"{where}: {e.message}" if where else e.message
        raise ConfigError(f"config validation failed: {detail}") from e


def load_config(path: Path) -> ImportConfig:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigError(f"config file not found: {path}") from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    _validate_config_schema(data)

    return ImportConfig(
        database=DatabaseConfig.from_mapping(data.get("database")),
        table=data.get("table", "users"),
        dedupe_within_batch=data.get("dedupe_within_batch", True),
        hash_iterations=(data.get("password_hashing") or {}).get("iterations", DEFAULT_ITERATIONS),
    )
