"""Request checks for the usage and retention administration endpoints."""

from __future__ import annotations

import re
from datetime import datetime

from .policies import ResetPolicy

VALID_PERIODS = ("daily", "monthly", "yearly", "custom")
DEFAULT_PERIOD = "daily"

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Word used in the confirmation string for each retention operation.
_CONFIRMATION_WORDS = {
    "archive": "ARCHIVE",
    "soft_reset": "RESET",
    "hard_delete": "DELETE",
}


class RequestRejected(Exception):
    """A request refused before any work is done, with the HTTP status to send."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


def _is_date(text: str) -> bool:
    if not _DATE_RE.match(text):
        return False
    try:
        datetime.strptime(text, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def validate_date_param(date: str | None, param_name: str) -> str:
    """Return a YYYY-MM-DD date unchanged; "" for an absent one.

    Raises RequestRejected (400) when the date is malformed.
    """
    if not date:
        return ""
    if not _is_date(date):
        raise RequestRejected(
            400, f"{param_name}: invalid date format (YYYY-MM-DD)"
        )
    return date


def validate_period(period: str | None) -> str:
    """Return the usage period, "daily" when it was not given.

    Raises RequestRejected (400) for anything but daily, monthly, yearly or custom.
    """
    if period is None:
        return DEFAULT_PERIOD
    if period not in VALID_PERIODS:
        raise RequestRejected(
            400,
            f"invalid period: {period} (choose one of {', '.join(VALID_PERIODS)})",
        )
    return period


def resolve_usage_client_id(
    trusted: bool, own_client_id: str, query_client_id: str | None
) -> str:
    """The client id whose usage may be read.

    Trusted networks may ask for any client; others only for themselves, and a
    request for another client raises RequestRejected (403).
    """
    query_client_id = query_client_id or ""
    if trusted:
        return query_client_id
    if query_client_id and query_client_id != own_client_id:
        raise RequestRejected(403, "usage of other clients cannot be viewed")
    return own_client_id


def check_retention_operation(
    policy: ResetPolicy, operation: str, before: str | None, confirmation: str | None
) -> str:
    """Check an archive, soft_reset or hard_delete request against the policy.

    Returns the validated cut-off date. Raises RequestRejected with 403 when the
    operation is not allowed and 400 when the request or its confirmation is bad.
    """
    word = _CONFIRMATION_WORDS.get(operation)
    if word is None:
        raise ValueError(f"unknown retention operation: {operation!r}")

    if not policy.is_operation_allowed(operation):
        raise RequestRejected(
            403,
            f"{operation} is not allowed; check allowed_operations in "
            "usage_retention.yaml",
        )

    if not before:
        raise RequestRejected(400, "invalid request: before is required")
    if not confirmation:
        raise RequestRejected(400, "invalid request: confirmation is required")

    if not _is_date(before):
        raise RequestRejected(400, "before: invalid date format (YYYY-MM-DD)")

    if policy.require_confirmation and confirmation != f"CONFIRM-{word}-{before}":
        raise RequestRejected(
            400,
            f"confirmation string does not match; expected format: "
            f"CONFIRM-{word}-{{date}}",
        )
    return before