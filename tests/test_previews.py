import string

import pytest

from ezai.model import Message
from ezai.policies import LoggingConfig, LoggingPrivacy, LoggingRecord, default_logging_config
from ezai.previews import hash_prompt, preview_lengths, preview_text, truncate


@pytest.mark.parametrize(
    "text, max_len",
    [("hello", 10), ("hello", 5), ("", 0), ("", 3)],
)
def test_truncate_keeps_short_text(text, max_len):
    assert truncate(text, max_len) == text


def test_truncate_cuts_and_marks():
    assert truncate("hello world", 5) == "hello..."


def test_truncate_counts_characters_not_bytes():
    assert truncate("가나다라", 2) == "가나..."
    assert truncate("가나다라", 4) == "가나다라"


def test_truncate_zero_length_leaves_only_ellipsis():
    assert truncate("abc", 0) == "..."


def test_preview_text_uses_last_user_message():
    messages = [
        Message(role="system", content="rules"),
        Message(role="user", content="first question"),
        Message(role="assistant", content="answer"),
        Message(role="user", content="second question"),
    ]
    assert preview_text(messages, 200) == "second question"
    assert preview_text(messages, 6) == "second..."


def test_preview_text_without_user_message_is_empty():
    messages = [
        Message(role="system", content="rules"),
        Message(role="assistant", content="answer"),
    ]
    assert preview_text(messages, 200) == ""
    assert preview_text([], 200) == ""


def test_hash_prompt_shape_and_determinism():
    messages = [Message(role="user", content="hi")]
    first = hash_prompt(None, messages)
    assert len(first) == 16
    assert set(first) <= set(string.hexdigits.lower())
    assert hash_prompt(None, messages) == first


def test_hash_prompt_of_nothing_is_sha256_of_empty_input():
    assert hash_prompt(None, []) == "e3b0c44298fc1c14"


def test_hash_prompt_distinguishes_conversations():
    a = hash_prompt(None, [Message(role="user", content="hi")])
    b = hash_prompt(None, [Message(role="user", content="bye")])
    c = hash_prompt(None, [Message(role="system", content="hi")])
    assert len({a, b, c}) == 3


def test_hash_prompt_hashes_role_colon_content_concatenated():
    split = [Message(role="user", content="a"), Message(role="user", content="b")]
    joined = [Message(role="user", content="auser:b")]
    assert hash_prompt(None, split) == hash_prompt(None, joined)


def test_hash_prompt_disabled_by_privacy_setting():
    cfg = LoggingConfig(privacy=LoggingPrivacy(hash_prompts=False))
    assert hash_prompt(cfg, [Message(role="user", content="hi")]) == ""


def test_hash_prompt_enabled_by_default_config():
    messages = [Message(role="user", content="hi")]
    assert hash_prompt(default_logging_config(), messages) == hash_prompt(None, messages)


def test_preview_lengths_defaults():
    assert preview_lengths(None) == (200, 200)
    assert preview_lengths(default_logging_config()) == (200, 200)


def test_preview_lengths_from_config():
    cfg = LoggingConfig(
        record=LoggingRecord(input_preview_length=50, output_preview_length=0)
    )
    assert preview_lengths(cfg) == (50, 0)