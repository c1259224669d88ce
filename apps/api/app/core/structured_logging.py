"""Structured logging helpers (PII-safe)."""

from typing import Any


def build_log_context(
    *,
    user_id: str | None = None,
    scope: str | None = None,
    record_id: str | None = None,
    reason: str | None = None,
    request_id: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = user_id
    if scope:
        context["scope"] = scope
    if record_id:
        context["record_id"] = record_id
    if reason:
        context["reason"] = reason
    if request_id:
        context["request_id"] = request_id
    return context
