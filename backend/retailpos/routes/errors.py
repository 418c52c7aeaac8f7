# Overview: Shared JSON error body for API routes.

from flask import jsonify


def json_error(message: str, status: int, details: dict | None = None):
    """
    Error response used by every blueprint.

    "error" and "message" carry the same human-readable text; "details" is
    included only when the domain error supplied one.
    """
    body = {"error": message, "message": message}
    if details:
        body["details"] = details
    return jsonify(body), status
