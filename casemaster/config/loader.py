from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load YAML config (default: config/casemaster.yml)
- Validate against casemaster/config/config_schema.json
- Apply defaults for every missing section / key
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/casemaster.yml")

DEFAULT_TABLE = "case_master"
DEFAULT_SHEET_NAME = "CaseMaster Report"
DEFAULT_OUTPUT_DIRECTORY = "~/Downloads"
DEFAULT_SUCCESS_DELAY = 3.0
DEFAULT_FAILURE_DELAY = 5.0
DEFAULT_SUCCESS_PREFIX = "Upload successful"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback (environment variables take precedence)."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None
    table: str = DEFAULT_TABLE


@dataclass(frozen=True)
class ReportConfig:
    sheet_name: str = DEFAULT_SHEET_NAME
    output_directory: str = DEFAULT_OUTPUT_DIRECTORY

    @property
    def output_path(self) -> Path:
        """Output directory with ``~`` expanded to the operator's home."""
        return Path(self.output_directory).expanduser()


@dataclass(frozen=True)
class UiConfig:
    success_delay_seconds: float = DEFAULT_SUCCESS_DELAY
    failure_delay_seconds: float = DEFAULT_FAILURE_DELAY
    success_prefix: str = DEFAULT_SUCCESS_PREFIX


@dataclass(frozen=True)
class AppConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    ui: UiConfig = field(default_factory=UiConfig)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing / not valid JSON, or the config data
            fails validation (unknown keys, wrong types, out of range values).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def default_config() -> AppConfig:
    return AppConfig()


def parse_config(data: dict[str, Any]) -> AppConfig:
    """Build an AppConfig from already-parsed YAML data."""
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")
    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    report_raw = data.get("report") or {}
    ui_raw = data.get("ui") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
        table=db_raw.get("table", DEFAULT_TABLE),
    )
    report = ReportConfig(
        sheet_name=report_raw.get("sheet_name", DEFAULT_SHEET_NAME),
        output_directory=report_raw.get("output_directory", DEFAULT_OUTPUT_DIRECTORY),
    )
    ui = UiConfig(
        success_delay_seconds=float(ui_raw.get("success_delay_seconds", DEFAULT_SUCCESS_DELAY)),
        failure_delay_seconds=float(ui_raw.get("failure_delay_seconds", DEFAULT_FAILURE_DELAY)),
        success_prefix=ui_raw.get("success_prefix", DEFAULT_SUCCESS_PREFIX),
    )
    return AppConfig(database=db, report=report, ui=ui)


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    return parse_config(data)
