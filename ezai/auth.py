"""Network-based authentication and request trace ids."""

from __future__ import annotations

import ipaddress
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Mapping, Protocol, Union

_log = logging.getLogger(__name__)

_Network = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

_CLIENT_ID_HEADER = "X-Client-ID"
_CREDENTIAL_HEADER = "X-Client-Secret"


@dataclass(frozen=True)
class ValidatedKey:
    """Key details returned by a successful client key validation."""

    client_id: str
    service_name: str
    expires_at: datetime


class _KeyValidator(Protocol):
    def validate(self, client_id: str, secret: str) -> ValidatedKey: ...


class AuthError(Exception):
    """A rejected request, carrying the HTTP status to answer with."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


@dataclass
class AuthResult:
    """Outcome of authenticating one request."""

    client_id: str
    trusted: bool
    service_name: str = ""
    headers: dict[str, str] = field(default_factory=dict)


def parse_cidrs(cidrs: Iterable[str]) -> list[_Network]:
    """Parse CIDR strings, skipping and logging the malformed ones."""
    nets: list[_Network] = []
    for cidr in cidrs:
        if "/" not in cidr:
            _log.warning("invalid CIDR, ignored: %r", cidr)
            continue
        try:
            nets.append(ipaddress.ip_network(cidr, strict=False))
        except ValueError as exc:
            _log.warning("invalid CIDR, ignored: %r (%s)", cidr, exc)
    return nets


def new_trace_id(now: datetime | None = None) -> str:
    """Return a trace id of the form tr_YYYYMMDD_HHMMSS_<uuid>."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return f"tr_{now.strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4()}"


def _header(headers: Mapping[str, str], name: str) -> str:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return ""


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Authenticator:
    """Lets trusted networks through; others must present a client key pair."""

    def __init__(
        self, trusted_cidrs: Iterable[str], validator: _KeyValidator | None = None
    ) -> None:
        self.trusted_nets = parse_cidrs(trusted_cidrs)
        self.validator = validator

    def is_trusted(self, client_ip: str) -> bool:
        """Whether the address lies in a trusted network."""
        try:
            ip = ipaddress.ip_address(client_ip)
        except ValueError:
            return False
        candidates: list[ipaddress.IPv4Address | ipaddress.IPv6Address] = [ip]
        if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
            candidates.append(ip.ipv4_mapped)
        return any(
            c.version == net.version and c in net
            for net in self.trusted_nets
            for c in candidates
        )

    def authenticate(
        self,
        client_ip: str,
        headers: Mapping[str, str],
        now: datetime | None = None,
    ) -> AuthResult:
        """Authenticate a request; raises AuthError with status 401 on failure."""
        if self.is_trusted(client_ip):
            client_id = _header(headers, _CLIENT_ID_HEADER) or f"trusted-{client_ip}"
            return AuthResult(client_id=client_id, trusted=True)

        client_id = _header(headers, _CLIENT_ID_HEADER)
        presented = _header(headers, _CREDENTIAL_HEADER)
        if not client_id or not presented:
            raise AuthError(401, "X-Client-ID and X-Client-Secret headers are required")
        if self.validator is None:
            raise AuthError(401, "client key validation is not configured")

        try:
            validated = self.validator.validate(client_id, presented)
        except Exception as exc:
            _log.warning(
                "client authentication failed: client_id=%s client_ip=%s error=%s",
                client_id,
                client_ip,
                exc,
            )
            raise AuthError(401, "authentication failed") from exc

        now = _utc(now) if now is not None else datetime.now(timezone.utc)
        expires = _utc(validated.expires_at)
        remaining = (expires - now).total_seconds()
        return AuthResult(
            client_id=validated.client_id,
            trusted=False,
            service_name=validated.service_name,
            headers={
                "X-Key-Expires-At": expires.strftime("%Y-%m-%dT%H:%M:%SZ"),
                "X-Key-Expires-In": f"{remaining:.0f}",
            },
        )

    def require_trusted(self, client_ip: str) -> None:
        """Raise AuthError with status 403 unless the address is trusted."""
        if not self.is_trusted(client_ip):
            raise AuthError(
                403, "the admin API is only reachable from trusted networks"
            )