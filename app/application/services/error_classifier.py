"""Advisory classification of sync errors for operator triage.

Never used for control flow; only feeds the run summary histogram.
"""

import httpx

from app.domain.enums import SyncErrorCategory

_STATUS_CATEGORIES: dict[int, SyncErrorCategory] = {
    401: SyncErrorCategory.AUTHENTICATION,
    403: SyncErrorCategory.AUTHENTICATION,
    408: SyncErrorCategory.TIMEOUT,
    429: SyncErrorCategory.RATE_LIMIT,
    504: SyncErrorCategory.TIMEOUT,
}

# Checked in order; first match wins.
_SUBSTRING_CATEGORIES: tuple[tuple[SyncErrorCategory, tuple[str, ...]], ...] = (
    (SyncErrorCategory.RATE_LIMIT, ("rate limit", "too many requests", "quota")),
    (
        SyncErrorCategory.AUTHENTICATION,
        ("unauthorized", "authentication", "invalid token", "invalid_grant", "jwt", "forbidden"),
    ),
    (SyncErrorCategory.TIMEOUT, ("timeout", "timed out")),
    (
        SyncErrorCategory.NETWORK,
        ("network", "fetch", "socket", "econnrefused", "connection", "dns"),
    ),
)


def _status_code(error: BaseException) -> int | None:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    code = getattr(error, "status_code", None)
    return code if isinstance(code, int) else None


def classify_message(message: str) -> SyncErrorCategory:
    """Classify by substring of the error message."""
    lowered = message.lower()
    for category, needles in _SUBSTRING_CATEGORIES:
        if any(n in lowered for n in needles):
            return category
    return SyncErrorCategory.UNKNOWN


def classify_error(error: BaseException | str) -> SyncErrorCategory:
    """Map an exception (or bare message) to an advisory category.

    Status codes and transport exception types take precedence over
    message matching.
    """
    if isinstance(error, str):
        return classify_message(error)
    if isinstance(error, (httpx.TimeoutException, TimeoutError)):
        return SyncErrorCategory.TIMEOUT
    if isinstance(error, (httpx.TransportError, ConnectionError)):
        return SyncErrorCategory.NETWORK
    code = _status_code(error)
    if code is not None and code in _STATUS_CATEGORIES:
        return _STATUS_CATEGORIES[code]
    cause = error.__cause__
    if cause is not None and cause is not error:
        category = classify_error(cause)
        if category != SyncErrorCategory.UNKNOWN:
            return category
    return classify_message(str(error))
