import logging
import os
from typing import Optional

from .base import BaseStorage


class LocalStorage(BaseStorage):
    """Intermediate-result cache kept on the local filesystem."""

    def __init__(self, workspace: str = "data/cache"):
        if not workspace.endswith("/"):
            workspace += "/"
        self.workspace = workspace
        self.logger = logging.getLogger("storage")

    def _get_absolute_filename(self, filename: str) -> str:
        """Constructs the absolute filename in local storage.

        Args:
            filename (str): The cache key.

        Return:
            str: The absolute filename in local storage.
        """
        return os.path.abspath(f"{self.workspace}{filename}")

    def file_exist(self, filename: str) -> bool:
        return os.path.isfile(self._get_absolute_filename(filename))

    def save_file(self, filename: str, content: str) -> str:
        """Saves a file to the cache workspace.

        Args:
            filename (str): The cache key.
            content: The content to save as text.

        Returns:
            str: The full path of the saved file on local filesystem.
        """
        try:
            os.makedirs(self.workspace, exist_ok=True)
        except Exception as e:
            raise RuntimeError(f"Error creating local cache directory: {e}")

        filepath = self._get_absolute_filename(filename)
        try:
            with open(filepath, "w", encoding="utf-8") as file:
                file.write(content)
        except Exception as e:
            raise RuntimeError(f"Error saving file to local storage: {e}")

        self.logger.debug(f"Cached {filename} at {filepath}")
        return filepath

    def read_file(self, filename: str) -> Optional[str]:
        filepath = self._get_absolute_filename(filename)
        if not os.path.isfile(filepath):
            return None
        with open(filepath, "r", encoding="utf-8") as file:
            return file.read()
