"""Helpers that shape what a request log records about prompts and replies."""

from __future__ import annotations

import hashlib
from typing import Sequence

from .model import Message
from .policies import DEFAULT_PREVIEW_LENGTH, LoggingConfig

ELLIPSIS = "..."
PROMPT_HASH_LENGTH = 16


def truncate(text: str, max_len: int) -> str:
    """Cut ``text`` to ``max_len`` characters, marking a cut with an ellipsis."""
    if len(text) <= max_len:
        return text
    return text[: max(max_len, 0)] + ELLIPSIS


def preview_text(messages: Sequence[Message], max_len: int) -> str:
    """The first ``max_len`` characters of the last user message, or ""."""
    for message in reversed(messages):
        if message.role == "user":
            return truncate(message.content, max_len)
    return ""


def hash_prompt(logging_config: LoggingConfig | None, messages: Sequence[Message]) -> str:
    """A short SHA-256 digest of the conversation; "" when hashing is turned off."""
    if logging_config is not None and not logging_config.privacy.hash_prompts:
        return ""
    digest = hashlib.sha256()
    for message in messages:
        digest.update(f"{message.role}:{message.content}".encode())
    return digest.hexdigest()[:PROMPT_HASH_LENGTH]


def preview_lengths(logging_config: LoggingConfig | None) -> tuple[int, int]:
    """Input and output preview lengths, defaulting to 200 each."""
    if logging_config is None:
        return DEFAULT_PREVIEW_LENGTH, DEFAULT_PREVIEW_LENGTH
    record = logging_config.record
    return record.input_preview_length, record.output_preview_length