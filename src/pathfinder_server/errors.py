"""Global exception handlers — map SDK exceptions to HTTP status codes.

The SDK raises ``ValueError`` for conversation-flow conditions (language not
selected yet, language already selected, unsupported language) and
``KeyError`` for unknown turns or languages.  Rather than catching these in
every route, global handlers inspect the message and pick the status code.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

# --- Keyword patterns in ValueError messages and their HTTP status codes ---
# Checked in order; first match wins.
_VALUE_ERROR_PATTERNS: list[tuple[str, int]] = [
    # handle() before select_language()
    ("not started", 409),
    # select_language() twice without a restart
    ("already selected", 409),
]


# --- Client-safe messages keyed by HTTP status code ---
_SAFE_MESSAGES: dict[int, str] = {
    409: "Conversation is not in a state that accepts this request",
    400: "Invalid request",
}


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Map SDK ``ValueError`` to 409 (wrong conversation state) or 400.

    The raw exception message is logged server-side; the client receives
    a generic description.
    """
    msg = str(exc)
    status = 400
    for pattern, code in _VALUE_ERROR_PATTERNS:
        if pattern in msg.lower():
            status = code
            break

    logger.warning("ValueError [%d] at %s: %s", status, request.url, msg)
    return JSONResponse(status_code=status, content={"detail": _SAFE_MESSAGES[status]})


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    """Map ``KeyError`` (unknown turn or language) to 404."""
    logger.warning("KeyError at %s: %s", request.url, exc)
    return JSONResponse(status_code=404, content={"detail": "Resource not found"})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
