"""Logging and retention policies."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .settings import ConfigError, _bool, _int, _parse_yaml, _section, _str_list

LOGGING_FILE = "logging.yaml"
RETENTION_FILE = "usage_retention.yaml"
DEFAULT_PREVIEW_LENGTH = 200
_MASK_KEYS_FIELD = "mask_api_keys"

_log = logging.getLogger(__name__)


@dataclass
class LoggingRecord:
    """What parts of a request are recorded."""

    input_preview: bool = False
    input_preview_length: int = 0
    output_preview: bool = False
    output_preview_length: int = 0
    full_prompt: bool = False
    full_response: bool = False


@dataclass
class LoggingPrivacy:
    """How sensitive data is treated in logs."""

    hash_prompts: bool = False
    mask_api_keys: bool = False
    mask_pii: bool = False


@dataclass
class LoggingConfig:
    """Request logging policy."""

    record: LoggingRecord = field(default_factory=LoggingRecord)
    privacy: LoggingPrivacy = field(default_factory=LoggingPrivacy)


def default_logging_config() -> LoggingConfig:
    """The policy used when logging.yaml is absent or unreadable."""
    return LoggingConfig(
        record=LoggingRecord(
            input_preview=True,
            input_preview_length=DEFAULT_PREVIEW_LENGTH,
            output_preview=True,
            output_preview_length=DEFAULT_PREVIEW_LENGTH,
            full_prompt=False,
            full_response=False,
        ),
        privacy=LoggingPrivacy(hash_prompts=True, mask_api_keys=True, mask_pii=False),
    )


def _preview_length(value: int) -> int:
    # Negative disables the preview; zero means the default.
    if value < 0:
        return 0
    if value == 0:
        return DEFAULT_PREVIEW_LENGTH
    return value


def load_logging_config(config_dir: str | os.PathLike[str]) -> LoggingConfig:
    """Load logging.yaml, falling back to the defaults when it is missing or bad."""
    try:
        text = (Path(config_dir) / LOGGING_FILE).read_text(encoding="utf-8")
    except OSError:
        return default_logging_config()
    try:
        policy = _section(_parse_yaml(text, LOGGING_FILE), "logging")
        record = _section(policy, "record")
        privacy = _section(policy, "privacy")
        cfg = LoggingConfig(
            record=LoggingRecord(
                input_preview=_bool(record, "input_preview"),
                input_preview_length=_int(record, "input_preview_length"),
                output_preview=_bool(record, "output_preview"),
                output_preview_length=_int(record, "output_preview_length"),
                full_prompt=_bool(record, "full_prompt"),
                full_response=_bool(record, "full_response"),
            ),
            privacy=LoggingPrivacy(
                hash_prompts=_bool(privacy, "hash_prompts"),
                mask_api_keys=_bool(privacy, _MASK_KEYS_FIELD),
                mask_pii=_bool(privacy, "mask_pii"),
            ),
        )
    except ConfigError as exc:
        _log.warning("failed to parse %s, using defaults: %s", LOGGING_FILE, exc)
        return default_logging_config()
    cfg.record.input_preview_length = _preview_length(cfg.record.input_preview_length)
    cfg.record.output_preview_length = _preview_length(cfg.record.output_preview_length)
    return cfg


@dataclass
class DetailLogsRetention:
    """How long detailed logs are kept."""

    hot_storage_days: int = 0
    archive_after_days: int = 0
    delete_after_days: int = 0


@dataclass
class AggregatedRetention:
    """How long aggregated data is kept."""

    daily_keep_days: int = 0
    monthly_keep_years: int = 0
    yearly_keep_years: int = 0


@dataclass
class ResetPolicy:
    """Which destructive usage operations are allowed."""

    require_confirmation: bool = False
    allowed_operations: list[str] = field(default_factory=list)

    def is_operation_allowed(self, op: str) -> bool:
        return op in self.allowed_operations


@dataclass
class RetentionConfig:
    """Log and cost retention policy."""

    detail_logs: DetailLogsRetention = field(default_factory=DetailLogsRetention)
    aggregated: AggregatedRetention = field(default_factory=AggregatedRetention)
    reset: ResetPolicy = field(default_factory=ResetPolicy)


def default_retention_config() -> RetentionConfig:
    """The policy used when usage_retention.yaml cannot be loaded."""
    return RetentionConfig(
        detail_logs=DetailLogsRetention(
            hot_storage_days=90, archive_after_days=90, delete_after_days=365
        ),
        reset=ResetPolicy(
            require_confirmation=True, allowed_operations=["soft_reset", "archive"]
        ),
    )


def load_retention_config(config_dir: str | os.PathLike[str]) -> RetentionConfig:
    """Load usage_retention.yaml; raises ConfigError when it is missing or bad."""
    try:
        text = (Path(config_dir) / RETENTION_FILE).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"failed to read retention config: {exc}") from exc
    retention = _section(_parse_yaml(text, "retention config"), "retention")
    detail = _section(retention, "detail_logs")
    aggregated = _section(retention, "aggregated")
    reset = _section(retention, "reset")
    cfg = RetentionConfig(
        detail_logs=DetailLogsRetention(
            hot_storage_days=_int(detail, "hot_storage_days"),
            archive_after_days=_int(detail, "archive_after_days"),
            delete_after_days=_int(detail, "delete_after_days"),
        ),
        aggregated=AggregatedRetention(
            daily_keep_days=_int(aggregated, "daily_keep_days"),
            monthly_keep_years=_int(aggregated, "monthly_keep_years"),
            yearly_keep_years=_int(aggregated, "yearly_keep_years"),
        ),
        reset=ResetPolicy(
            require_confirmation=_bool(reset, "require_confirmation"),
            allowed_operations=_str_list(reset, "allowed_operations"),
        ),
    )
    if cfg.detail_logs.hot_storage_days == 0:
        cfg.detail_logs.hot_storage_days = 90
    if cfg.detail_logs.archive_after_days == 0:
        cfg.detail_logs.archive_after_days = 90
    return cfg