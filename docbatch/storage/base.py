from abc import ABC, abstractmethod
from typing import Any


class BaseKeyValueStore(ABC):
    """Contract for the get/replace persistence used by the queue and progress."""

    @abstractmethod
    def get(self, key: str) -> dict[str, Any] | None:
        """Return the JSON-compatible value stored under *key*, or None."""

    @abstractmethod
    def replace(self, key: str, value: dict[str, Any]) -> None:
        """Store *value* under *key*, overwriting any previous value.

        Raises:
            StorageError: if the backend cannot persist the value.
        """
