"""Request, response and job data shared across the gateway."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

VALID_ROLES = ("system", "user", "assistant")

_TIME_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})$"
)


def _format_time(value: datetime) -> str:
    """Format a datetime as RFC 3339 with trailing fractional zeros removed."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset()
    seconds = int(offset.total_seconds()) if offset is not None else 0
    if seconds == 0:
        return text + "Z"
    sign = "+" if seconds > 0 else "-"
    hours, minutes = divmod(abs(seconds) // 60, 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


def _parse_time(text: str) -> datetime:
    """Parse an RFC 3339 timestamp, accepting up to nanosecond precision."""
    match = _TIME_RE.match(text)
    if match is None:
        raise ValueError(f"invalid timestamp: {text!r}")
    base, fraction, zone = match.groups()
    if fraction:
        base += "." + fraction[:6].ljust(6, "0")
    if zone == "Z":
        zone = "+00:00"
    return datetime.fromisoformat(base + zone)


def _optional_number(data: dict[str, Any], key: str, kind: type) -> Any:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    if kind is int:
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"{key} must be an integer")
        return int(value)
    return float(value)


def _flag(data: dict[str, Any], key: str) -> bool:
    value = data.get(key, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean")
    return value


def _text(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


@dataclass
class Message:
    """One conversation message."""

    role: str
    content: str


def _message_from_dict(data: dict[str, Any]) -> Message:
    if not isinstance(data, dict):
        raise ValueError("message must be an object")
    role = _text(data, "role")
    content = _text(data, "content")
    if role not in VALID_ROLES:
        raise ValueError(f"role must be one of {', '.join(VALID_ROLES)}")
    if not content:
        raise ValueError("content is required")
    return Message(role=role, content=content)


@dataclass
class ChatOptions:
    """Model parameters for a chat request."""

    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    stream: bool = False
    search_grounding: bool = False

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.temperature is not None:
            out["temperature"] = self.temperature
        if self.max_tokens is not None:
            out["max_tokens"] = self.max_tokens
        if self.top_p is not None:
            out["top_p"] = self.top_p
        if self.stream:
            out["stream"] = True
        if self.search_grounding:
            out["search_grounding"] = True
        return out


def _options_from_dict(data: Any) -> ChatOptions:
    if data is None:
        return ChatOptions()
    if not isinstance(data, dict):
        raise ValueError("options must be an object")
    return ChatOptions(
        temperature=_optional_number(data, "temperature", float),
        max_tokens=_optional_number(data, "max_tokens", int),
        top_p=_optional_number(data, "top_p", float),
        stream=_flag(data, "stream"),
        search_grounding=_flag(data, "search_grounding"),
    )


@dataclass
class FallbackTarget:
    """A provider/model pair to try when the primary fails."""

    provider: str
    model: str


@dataclass
class RequestMetadata:
    """Caller-supplied metadata."""

    client_id: str = ""
    request_id: str = ""


@dataclass
class ChatRequest:
    """Unified chat request for every provider."""

    provider: str
    model: str
    messages: list[Message]
    options: ChatOptions = field(default_factory=ChatOptions)
    fallback: list[FallbackTarget] = field(default_factory=list)
    fallback_policy: str = ""
    project: str = ""
    task: str = ""
    prompt_vars: dict[str, Any] = field(default_factory=dict)
    metadata: RequestMetadata = field(default_factory=RequestMetadata)

    def validate_options(self) -> None:
        """Raise ValueError when an option lies outside its allowed range."""
        opts = self.options
        if opts.temperature is not None and not 0 <= opts.temperature <= 2:
            raise ValueError("temperature must be within 0.0-2.0")
        if opts.max_tokens is not None and opts.max_tokens < 1:
            raise ValueError("max_tokens must be at least 1")
        if opts.top_p is not None and not 0 <= opts.top_p <= 1:
            raise ValueError("top_p must be within 0.0-1.0")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatRequest:
        """Build a request from decoded JSON, enforcing required fields."""
        if not isinstance(data, dict):
            raise ValueError("request must be an object")
        provider = _text(data, "provider")
        model = _text(data, "model")
        if not provider:
            raise ValueError("provider is required")
        if not model:
            raise ValueError("model is required")
        raw_messages = data.get("messages")
        if not isinstance(raw_messages, list) or not raw_messages:
            raise ValueError("messages must contain at least one message")
        raw_fallback = data.get("fallback") or []
        if not isinstance(raw_fallback, list):
            raise ValueError("fallback must be a list")
        raw_vars = data.get("prompt_variables") or {}
        if not isinstance(raw_vars, dict):
            raise ValueError("prompt_variables must be an object")
        raw_meta = data.get("metadata") or {}
        if not isinstance(raw_meta, dict):
            raise ValueError("metadata must be an object")
        return cls(
            provider=provider,
            model=model,
            messages=[_message_from_dict(m) for m in raw_messages],
            options=_options_from_dict(data.get("options")),
            fallback=[
                FallbackTarget(provider=_text(f, "provider"), model=_text(f, "model"))
                for f in raw_fallback
            ],
            fallback_policy=_text(data, "fallback_policy"),
            project=_text(data, "project"),
            task=_text(data, "task"),
            prompt_vars=dict(raw_vars),
            metadata=RequestMetadata(
                client_id=_text(raw_meta, "client_id"),
                request_id=_text(raw_meta, "request_id"),
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "provider": self.provider,
            "model": self.model,
            "messages": [{"role": m.role, "content": m.content} for m in self.messages],
            "options": self.options.to_dict(),
        }
        if self.fallback:
            out["fallback"] = [
                {"provider": f.provider, "model": f.model} for f in self.fallback
            ]
        if self.fallback_policy:
            out["fallback_policy"] = self.fallback_policy
        if self.project:
            out["project"] = self.project
        if self.task:
            out["task"] = self.task
        if self.prompt_vars:
            out["prompt_variables"] = dict(self.prompt_vars)
        meta: dict[str, Any] = {"client_id": self.metadata.client_id}
        if self.metadata.request_id:
            meta["request_id"] = self.metadata.request_id
        out["metadata"] = meta
        return out


@dataclass
class UsageInfo:
    """Token usage and estimated cost."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    estimated_cost: float = 0.0

    def _to_dict(self) -> dict[str, Any]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
            "estimated_cost_usd": self.estimated_cost,
        }

    @classmethod
    def _from_dict(cls, data: Any) -> UsageInfo:
        data = data or {}
        return cls(
            input_tokens=int(data.get("input_tokens") or 0),
            output_tokens=int(data.get("output_tokens") or 0),
            total_tokens=int(data.get("total_tokens") or 0),
            estimated_cost=float(data.get("estimated_cost_usd") or 0.0),
        )


@dataclass
class SearchSource:
    """A search result cited by a grounded answer."""

    title: str
    uri: str


@dataclass
class ResponseMetadata:
    """Response metadata: latency and fallback information."""

    latency_ms: int = 0
    fallback_used: bool = False
    fallback_reason: str | None = None
    search_sources: list[SearchSource] = field(default_factory=list)


@dataclass
class ChatResponse:
    """Unified chat response."""

    id: str = ""
    provider: str = ""
    model: str = ""
    content: str = ""
    usage: UsageInfo = field(default_factory=UsageInfo)
    metadata: ResponseMetadata = field(default_factory=ResponseMetadata)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatResponse:
        if not isinstance(data, dict):
            raise ValueError("response must be an object")
        meta = data.get("metadata") or {}
        return cls(
            id=_text(data, "id"),
            provider=_text(data, "provider"),
            model=_text(data, "model"),
            content=_text(data, "content"),
            usage=UsageInfo._from_dict(data.get("usage")),
            metadata=ResponseMetadata(
                latency_ms=int(meta.get("latency_ms") or 0),
                fallback_used=bool(meta.get("fallback_used", False)),
                fallback_reason=meta.get("fallback_reason"),
                search_sources=[
                    SearchSource(title=_text(s, "title"), uri=_text(s, "uri"))
                    for s in meta.get("search_sources") or []
                ],
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        meta: dict[str, Any] = {
            "latency_ms": self.metadata.latency_ms,
            "fallback_used": self.metadata.fallback_used,
        }
        if self.metadata.fallback_reason is not None:
            meta["fallback_reason"] = self.metadata.fallback_reason
        if self.metadata.search_sources:
            meta["search_sources"] = [
                {"title": s.title, "uri": s.uri} for s in self.metadata.search_sources
            ]
        return {
            "id": self.id,
            "provider": self.provider,
            "model": self.model,
            "content": self.content,
            "usage": self.usage._to_dict(),
            "metadata": meta,
        }


@dataclass
class StreamChunk:
    """One piece of a streamed response."""

    content: str = ""
    done: bool = False
    error: str | None = None
    usage: UsageInfo | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.content:
            out["content"] = self.content
        out["done"] = self.done
        if self.error is not None:
            out["error"] = self.error
        if self.usage is not None:
            out["usage"] = self.usage._to_dict()
        return out


class JobStatus(str, Enum):
    """Lifecycle state of a batch job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class BatchJob:
    """A queued batch request and its outcome."""

    job_id: str
    client_id: str
    status: JobStatus
    created_at: datetime
    updated_at: datetime
    request: ChatRequest | None = None
    response: ChatResponse | None = None
    error: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BatchJob:
        if not isinstance(data, dict):
            raise ValueError("job must be an object")
        raw_request = data.get("request")
        raw_response = data.get("response")
        return cls(
            job_id=_text(data, "job_id"),
            client_id=_text(data, "client_id"),
            status=JobStatus(data.get("status")),
            created_at=_parse_time(_text(data, "created_at")),
            updated_at=_parse_time(_text(data, "updated_at")),
            request=ChatRequest.from_dict(raw_request) if raw_request else None,
            response=ChatResponse.from_dict(raw_response) if raw_response else None,
            error=data.get("error"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "job_id": self.job_id,
            "client_id": self.client_id,
            "status": self.status.value,
        }
        if self.request is not None:
            out["request"] = self.request.to_dict()
        if self.response is not None:
            out["response"] = self.response.to_dict()
        if self.error is not None:
            out["error"] = self.error
        out["created_at"] = _format_time(self.created_at)
        out["updated_at"] = _format_time(self.updated_at)
        return out


@dataclass
class ModelInfo:
    """A model offered by a registered provider."""

    provider: str
    model: str
    display_name: str
    available: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "model": self.model,
            "display_name": self.display_name,
            "available": self.available,
        }