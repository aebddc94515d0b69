import json
from abc import ABC, abstractmethod
from typing import Any, Optional


class BaseStorage(ABC):
    """
    Abstract base class for the intermediate-result cache.

    Results are addressed by a cache key (a filename) inside a workspace
    directory owned by the storage backend.
    """

    @abstractmethod
    def file_exist(self, filename: str) -> bool:
        """
        Check if a cached file exists.

        Args:
            filename (str): The cache key.

        Returns:
            bool: True if the file exists, False otherwise.
        """

    @abstractmethod
    def save_file(self, filename: str, content: str) -> str:
        """Saves text content under the given cache key.

        Args:
            filename (str): The cache key.
            content (str): The content to save.

        Returns:
            str: The full path of the saved file.

        Raises:
            RuntimeError: If file saving fails.
        """
        pass

    @abstractmethod
    def read_file(self, filename: str) -> Optional[str]:
        """Reads text content stored under the given cache key.

        Args:
            filename (str): The cache key.

        Returns:
            Optional[str]: The stored content, or None when the key is absent.
        """
        pass

    def read_json(self, filename: str) -> Optional[Any]:
        """Reads and decodes a cached JSON document, None when absent."""
        content = self.read_file(filename)
        if content is None:
            return None
        return json.loads(content)

    def write_json(self, filename: str, payload: Any) -> str:
        """Encodes a payload as JSON and caches it."""
        return self.save_file(filename, json.dumps(payload))
