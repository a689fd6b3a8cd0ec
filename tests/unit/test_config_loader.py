from __future__ import annotations

from pathlib import Path

import pytest

from casemaster.config.loader import (
    AppConfig,
    ConfigError,
    default_config,
    load_config,
    parse_config,
)


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.database.host == "localhost"
    assert cfg.database.port == 5432
    assert cfg.database.table == "case_master"
    assert cfg.report.sheet_name == "CaseMaster Report"
    assert cfg.report.output_path == Path("./out")
    assert cfg.ui.success_delay_seconds == 3.0
    assert cfg.ui.failure_delay_seconds == 5.0
    assert cfg.ui.success_prefix == "Upload successful"


def test_load_config_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError) as e:
        load_config(temp_workdir / "config" / "not_exists.yml")
    assert "config file not found" in str(e.value)


def test_load_config_invalid_yaml(write_config: Path):
    write_config.write_text("database: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "invalid yaml" in str(e.value)


def test_empty_file_uses_defaults(write_config: Path):
    write_config.write_text("", encoding="utf-8")
    assert load_config(write_config) == default_config()


def test_defaults():
    cfg = default_config()
    assert isinstance(cfg, AppConfig)
    assert cfg.database.table == "case_master"
    assert cfg.report.output_path == Path("~/Downloads").expanduser()
    assert cfg.ui.success_delay_seconds == 3.0
    assert cfg.ui.failure_delay_seconds == 5.0


def test_partial_sections_fill_defaults():
    cfg = parse_config({"ui": {"failure_delay_seconds": 1}})
    assert cfg.ui.failure_delay_seconds == 1.0
    assert cfg.ui.success_delay_seconds == 3.0
    assert cfg.report.sheet_name == "CaseMaster Report"


@pytest.mark.parametrize(
    "data",
    [
        {"unknown": 1},
        {"database": {"table": "case_master; DROP TABLE x"}},
        {"database": {"port": 0}},
        {"report": {"sheet_name": "x" * 32}},
        {"ui": {"success_delay_seconds": -1}},
        {"ui": {"failure_delay_seconds": "soon"}},
    ],
)
def test_schema_violations_rejected(data):
    with pytest.raises(ConfigError) as e:
        parse_config(data)
    assert "config validation failed" in str(e.value)


def test_non_mapping_root_rejected():
    with pytest.raises(ConfigError):
        parse_config(["not", "a", "mapping"])  # type: ignore[arg-type]


def test_example_config_is_valid():
    example = Path(__file__).resolve().parents[2] / "config" / "casemaster.example.yml"
    cfg = load_config(example)
    assert cfg.report.output_directory == "~/Downloads"
