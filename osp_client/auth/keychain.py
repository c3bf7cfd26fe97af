"""Persisted session entries in the system keychain."""

import json
import logging
from typing import Any, Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

__all__ = ["KeychainStore", "SERVICE_NAME"]

logger = logging.getLogger(__name__)

SERVICE_NAME = "OSP Client"


class KeychainStore:
    """String key-value store backed by the OS keychain.

    Each key is stored as its own keychain entry under one service name.
    Keychain failures are logged and reported through the return value.
    """

    def __init__(self, service_name: str = SERVICE_NAME):
        """Initialize keychain store.

        Args:
            service_name: Service name for keychain entries
        """
        self.service_name = service_name

    def get_item(self, key: str) -> Optional[str]:
        """Load a value.

        Returns:
            The stored string, or None if missing or unreadable
        """
        try:
            return keyring.get_password(self.service_name, key)
        except KeyringError as e:
            logger.error(f"Failed to load {key}: {e}")
            return None

    def set_item(self, key: str, value: str) -> bool:
        """Store a value.

        Returns:
            True if stored successfully
        """
        try:
            keyring.set_password(self.service_name, key, value)
            logger.debug(f"Stored {key}")
            return True
        except KeyringError as e:
            logger.error(f"Failed to store {key}: {e}")
            return False

    def remove_item(self, key: str) -> bool:
        """Delete a value.

        Returns:
            True if deleted (or didn't exist)
        """
        try:
            keyring.delete_password(self.service_name, key)
            logger.debug(f"Removed {key}")
            return True
        except PasswordDeleteError:
            # Entry didn't exist
            return True
        except KeyringError as e:
            logger.error(f"Failed to remove {key}: {e}")
            return False

    def get_json(self, key: str) -> Optional[Any]:
        data = self.get_item(key)
        if not data:
            return None
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON stored under {key}: {e}")
            return None

    def set_json(self, key: str, value: Any) -> bool:
        return self.set_item(key, json.dumps(value))
