"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from batchorg.config import (
    BatchorgConfig,
    ConfigError,
    ConfigManager,
    OrganizationRules,
    flatten_for_env,
    resolve_with_precedence,
)


def _fresh_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager()


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".batchorg" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "batchorg configuration file" in text
    assert "Last updated:" in text

    config = manager.load(include_env=False)
    assert isinstance(config, BatchorgConfig)
    assert config.llm.model == "gpt-4o-mini"
    assert config.classification.group_size == 3
    assert config.rules.ai_classification is False


def test_resolve_with_precedence_respects_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.save({"llm": {"model": "gpt-4o"}, "classification": {"group_size": 5}})

    env = {"BATCHORG__LLM__TEMPERATURE": "0.7", "BATCHORG__CLASSIFICATION__GROUP_SIZE": "2"}
    cli = {"llm.temperature": 0.2}

    config = manager.load(cli_overrides=cli, env_overrides=env)

    assert config.llm.model == "gpt-4o"
    assert config.classification.group_size == 2
    # CLI overrides take precedence over environment
    assert config.llm.temperature == pytest.approx(0.2)


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_flatten_for_env_uses_prefixed_keys() -> None:
    flat = flatten_for_env(BatchorgConfig())

    assert flat["BATCHORG__LLM__PROVIDER"] == "openai"
    assert flat["BATCHORG__CLASSIFICATION__GROUP_DELAY_SECONDS"] == "1.0"
    assert flat["BATCHORG__RULES__IGNORED_TYPES"] == "[]"


def test_resolve_with_precedence_invalid_value_raises() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=BatchorgConfig(),
            file_overrides={"classification": {"group_size": 0}},
        )


def test_rules_accept_camel_case_blob() -> None:
    rules = OrganizationRules.model_validate(
        {
            "organizeByType": False,
            "organizeBySize": True,
            "organizeByDate": False,
            "detectDuplicates": True,
            "aiClassification": True,
            "customRules": [
                {
                    "id": "1",
                    "name": "Invoices",
                    "condition": "extension",
                    "value": ".invoice",
                    "targetFolder": "Finance/Invoices",
                    "enabled": True,
                }
            ],
            "ignoredTypes": ["TMP", ".log", " .tmp "],
        }
    )

    assert rules.organize_by_type is False
    assert rules.ai_classification is True
    assert rules.custom_rules[0].target_folder == "Finance/Invoices"
    assert rules.ignored_types == [".tmp", ".log"]


def test_rules_reject_unknown_fields() -> None:
    with pytest.raises(ValueError):
        OrganizationRules.model_validate({"organizeByColour": True})
