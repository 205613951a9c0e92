"""Local filesystem storage implementation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import IO

from werkzeug.utils import secure_filename

from .abstract_storage import AbstractStorage


class LocalStorage(AbstractStorage):
    """Persist files under ``<upload_dir>/<subdirectory>``."""

    def __init__(self, upload_dir: str, subdirectory: str = "avatars"):
        self.subdirectory = subdirectory
        self.base_directory = Path(upload_dir) / subdirectory
        os.makedirs(self.base_directory, exist_ok=True)

    def store(self, file_obj: IO[bytes], desired_name: str) -> str:
        """Save a file and return its path relative to the upload directory."""

        safe_name = secure_filename(desired_name)
        if not safe_name:
            raise ValueError("Filename must contain at least one valid character.")

        destination = self.base_directory / safe_name
        if hasattr(file_obj, "save"):
            file_obj.save(destination)  # type: ignore[arg-type]
        else:
            with open(destination, "wb") as output:
                output.write(file_obj.read())

        return f"{self.subdirectory}/{safe_name}"

    def exists(self, path: str) -> bool:
        return (self.base_directory.parent / path).exists()
