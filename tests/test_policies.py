import pytest

from ezai.policies import (
    ResetPolicy,
    default_logging_config,
    default_retention_config,
    load_logging_config,
    load_retention_config,
)
from ezai.settings import ConfigError


def test_missing_logging_file_gives_defaults(tmp_path):
    cfg = load_logging_config(tmp_path)
    assert cfg == default_logging_config()
    assert cfg.record.input_preview_length == 200
    assert cfg.record.output_preview_length == 200
    assert cfg.privacy.hash_prompts is True
    assert cfg.privacy.mask_api_keys is True
    assert cfg.privacy.mask_pii is False


def test_preview_length_zero_and_negative(tmp_path):
    (tmp_path / "logging.yaml").write_text(
        "logging:\n  record:\n    input_preview_length: -1\n"
        "    output_preview_length: 0\n",
        encoding="utf-8",
    )
    cfg = load_logging_config(tmp_path)
    assert cfg.record.input_preview_length == 0
    assert cfg.record.output_preview_length == 200


def test_logging_values_kept_and_missing_flags_false(tmp_path):
    (tmp_path / "logging.yaml").write_text(
        "logging:\n  record:\n    input_preview: true\n    input_preview_length: 50\n"
        "  privacy:\n    mask_pii: true\n",
        encoding="utf-8",
    )
    cfg = load_logging_config(tmp_path)
    assert cfg.record.input_preview is True
    assert cfg.record.input_preview_length == 50
    assert cfg.record.output_preview is False
    assert cfg.privacy.mask_pii is True
    assert cfg.privacy.hash_prompts is False


def test_bad_logging_yaml_gives_defaults(tmp_path):
    (tmp_path / "logging.yaml").write_text("logging: [broken\n", encoding="utf-8")
    assert load_logging_config(tmp_path) == default_logging_config()


def test_missing_retention_file_raises(tmp_path):
    with pytest.raises(ConfigError):
        load_retention_config(tmp_path)


def test_bad_retention_yaml_raises(tmp_path):
    (tmp_path / "usage_retention.yaml").write_text("retention: [x\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_retention_config(tmp_path)


def test_retention_defaults_and_values(tmp_path):
    (tmp_path / "usage_retention.yaml").write_text(
        "retention:\n  detail_logs:\n    delete_after_days: 30\n"
        "  aggregated:\n    daily_keep_days: 14\n"
        "  reset:\n    require_confirmation: true\n"
        "    allowed_operations: [archive, hard_delete]\n",
        encoding="utf-8",
    )
    cfg = load_retention_config(tmp_path)
    assert cfg.detail_logs.hot_storage_days == 90
    assert cfg.detail_logs.archive_after_days == 90
    assert cfg.detail_logs.delete_after_days == 30
    assert cfg.aggregated.daily_keep_days == 14
    assert cfg.reset.require_confirmation is True
    assert cfg.reset.is_operation_allowed("hard_delete")
    assert not cfg.reset.is_operation_allowed("soft_reset")


def test_default_retention_config():
    cfg = default_retention_config()
    assert cfg.detail_logs.delete_after_days == 365
    assert cfg.reset.require_confirmation is True
    assert cfg.reset.allowed_operations == ["soft_reset", "archive"]
    assert not cfg.reset.is_operation_allowed("hard_delete")


def test_reset_policy_empty_allows_nothing():
    assert ResetPolicy().is_operation_allowed("archive") is False