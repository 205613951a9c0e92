"""Utilities for reading incoming Flask requests."""

from __future__ import annotations

from flask import Request
from werkzeug.exceptions import BadRequest


def parse_request_data(req: Request, *, allow_empty: bool = False) -> dict:
    """Return the JSON object or form fields of the request body.

    JSON bodies must be objects; multipart and urlencoded bodies are read
    from ``req.form``. Anything else is rejected with a 400.
    """

    if req.is_json:
        data = req.get_json(silent=True)
        if data is None:
            raise BadRequest("Request JSON body is malformed.")
        if not isinstance(data, dict):
            raise BadRequest("Request JSON payload must be an object.")
    elif req.mimetype in {"multipart/form-data", "application/x-www-form-urlencoded"}:
        data = req.form.to_dict()
    elif not req.get_data() and allow_empty:
        data = {}
    else:
        raise BadRequest("Request content type must be application/json or form data.")

    if not data and not allow_empty:
        raise BadRequest("Request body must not be empty.")
    return data


def parse_bool(value: object) -> bool:
    """Interpret checkbox-style values; anything unrecognised is False."""

    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {"1", "true", "yes", "y", "on"}
