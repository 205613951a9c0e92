"""Naming and type policy for avatar uploads."""

from __future__ import annotations

import time
from typing import Callable

from .errors import ValidationError

ALLOWED_AVATAR_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "svg"}


def _extension(filename: str | None) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def avatar_filename(upload, clock: Callable[[], float] = time.time) -> str:
    """Validate ``upload`` and return its stored name: ``<unix time>.<ext>``.

    ``upload`` is anything with ``filename`` and ``mimetype`` attributes, such
    as a ``werkzeug.datastructures.FileStorage``.
    """

    extension = _extension(getattr(upload, "filename", None))
    mimetype = (getattr(upload, "mimetype", None) or "").lower()
    errors = []
    if not mimetype.startswith("image/"):
        errors.append("The avatar must be an image.")
    if extension not in ALLOWED_AVATAR_EXTENSIONS:
        allowed = ", ".join(sorted(ALLOWED_AVATAR_EXTENSIONS))
        errors.append(f"The avatar must be a file of type: {allowed}.")
    if errors:
        raise ValidationError({"avatar": errors})
    return f"{int(clock())}.{extension}"
