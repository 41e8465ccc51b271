from __future__ import annotations

from pathlib import Path

import pytest

from tree_digest.exceptions import ConfigurationError
from tree_digest.settings import Settings, build_settings, env_defaults, load_config_file


@pytest.mark.unit
def test_settings_defaults() -> None:
    settings = Settings(source=".")

    assert settings.output is None
    assert settings.max_size == 1024
    assert settings.max_file_size == 1024 * 1024
    assert settings.pattern_type == "exclude"
    assert not settings.pattern
    assert not settings.log_file


@pytest.mark.unit
def test_env_defaults_reads_prefixed_variables() -> None:
    environ = {"TREE_DIGEST_MAX_SIZE": "64", "TREE_DIGEST_PATTERN_TYPE": "include", "OTHER": "x"}

    assert env_defaults(environ) == {"max_size": "64", "pattern_type": "include"}


@pytest.mark.unit
def test_build_settings_precedence(tmp_path: Path) -> None:
    config = tmp_path / "digest.yaml"
    config.write_text("max-size: 32\npattern:\n  - '*.py'\n  - '*.md'\npattern_type: include\n", encoding="utf-8")

    settings = build_settings(
        {"source": "repo", "config": config, "max_size": None, "pattern_type": None, "output": None},
        environ={"TREE_DIGEST_MAX_SIZE": "64", "TREE_DIGEST_LOG_FILE": "run.log"},
    )

    assert settings.max_size == 32
    assert settings.pattern == "*.py,*.md"
    assert settings.pattern_type == "include"
    assert settings.log_file == "run.log"

    overridden = build_settings({"source": "repo", "config": config, "max_size": 8}, environ={})

    assert overridden.max_size == 8


@pytest.mark.unit
def test_build_settings_rejects_invalid_values() -> None:
    with pytest.raises(ConfigurationError, match="Invalid settings"):
        build_settings({"source": "repo", "pattern_type": "sometimes"}, environ={})

    with pytest.raises(ConfigurationError, match="Invalid settings"):
        build_settings({"source": None}, environ={})


@pytest.mark.unit
def test_pattern_type_is_normalized() -> None:
    assert Settings(source=".", pattern_type=" Include ").pattern_type == "include"


@pytest.mark.unit
def test_load_config_file_requires_a_mapping(tmp_path: Path) -> None:
    config = tmp_path / "digest.yaml"
    config.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="must contain a mapping"):
        load_config_file(config)

    with pytest.raises(ConfigurationError, match="Cannot read config file"):
        load_config_file(tmp_path / "missing.yaml")
