"""CORS policy driven by the ``ALLOWED_ORIGINS`` allow-list."""

ALLOW_METHODS = "GET,POST,PUT,DELETE,OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization"


def resolve_allowed_origin(origin: str | None, allowed: list[str]) -> str:
    """Pick the ``Access-Control-Allow-Origin`` value for a request.

    An empty list or a ``*`` entry allows everything. A request without an
    Origin header gets the first configured origin. Origins not on the list
    get ``null`` so the browser refuses to expose the response, while the
    status itself is left alone.
    """
    if not origin:
        return allowed[0] if allowed else "*"
    if not allowed or "*" in allowed:
        return "*"
    return origin if origin in allowed else "null"


def cors_headers(origin: str | None, allowed: list[str]) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": resolve_allowed_origin(origin, allowed),
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
    }
