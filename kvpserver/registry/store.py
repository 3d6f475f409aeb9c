"""
Registry Store Module

This module implements the in-memory key-value registry the server
answers GET and PUT requests from.

The update policy decides what a PUT on an existing key does. It is
chosen when the store is created and cannot be changed afterwards.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from ..config.settings import settings


class UpdatePolicy(Enum):
    """What happens when a key that already exists is inserted again."""
    ALLOW_OVERWRITE = "allow-overwrite"
    REJECT_DUPLICATE = "reject-duplicate"

    @classmethod
    def from_strict(cls, strict: bool) -> "UpdatePolicy":
        """Map the strict mode flag to a policy."""
        return cls.REJECT_DUPLICATE if strict else cls.ALLOW_OVERWRITE


class RegistryStore:
    """
    In-memory registry of key-value pairs.

    This class provides O(1) average-case time complexity for:
    - insert: Add a pair, or update it when the policy allows
    - lookup: Retrieve a value by exact key

    Internal Storage:
        A plain dict, which keeps insertion order: pairs loaded from the
        registry file come first, followed by keys added at runtime.
        Overwriting a key keeps its first position.

    Attributes:
        policy: The UpdatePolicy fixed at construction time
    """

    def __init__(self, policy: UpdatePolicy = None):
        """
        Initialize the registry.

        Args:
            policy: Update policy (default derived from settings.STRICT)
        """
        self._policy = policy if policy is not None else UpdatePolicy.from_strict(settings.STRICT)
        self._pairs: Dict[str, str] = {}

    @property
    def policy(self) -> UpdatePolicy:
        return self._policy

    def insert(self, key: str, value: str) -> bool:
        """
        Insert a key-value pair.

        Args:
            key: The key to store
            value: The value to associate with the key

        Returns:
            True if the pair was stored, False if the key already exists
            and the policy is REJECT_DUPLICATE (the old value is kept).
        """
        if key in self._pairs and self._policy is UpdatePolicy.REJECT_DUPLICATE:
            return False

        self._pairs[key] = value
        return True

    def lookup(self, key: str) -> Optional[str]:
        """
        Retrieve the value for a given key.

        Args:
            key: The key to look up (case-sensitive)

        Returns:
            The value if found, None otherwise
        """
        return self._pairs.get(key)

    def contains(self, key: str) -> bool:
        """Check if a key is present."""
        return key in self._pairs

    def size(self) -> int:
        """Get the current number of keys in the registry."""
        return len(self._pairs)

    def keys(self) -> List[str]:
        """Get all keys in insertion order."""
        return list(self._pairs)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the registry.

        Returns:
            Dictionary containing:
            - total_keys: Number of keys stored
            - policy: Name of the update policy in effect
        """
        return {
            "total_keys": len(self._pairs),
            "policy": self._policy.value,
        }
