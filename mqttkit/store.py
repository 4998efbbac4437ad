"""Message persistence interface and store key helpers.

The same message id may be in use inbound and outbound at once. Each stored
message therefore has a key of the form ``i.<id>`` (inbound) or ``o.<id>``
(outbound).
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, Optional

INBOUND_PREFIX = "i."
OUTBOUND_PREFIX = "o."

_MID_PATTERN = re.compile(r"[0-9]+")
_MAX_MID = 0xFFFF


class Store(ABC):
    """Persistence for in-flight control packets, keyed by store key."""

    @abstractmethod
    def open(self) -> None:
        """Prepare the store for use."""

    @abstractmethod
    def put(self, key: str, message: Any) -> None:
        """Store ``message`` under ``key``."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the message stored under ``key``, or None."""

    @abstractmethod
    def all(self) -> list[str]:
        """Return every key in the store."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the message stored under ``key``."""

    @abstractmethod
    def close(self) -> None:
        """Stop using the store."""

    @abstractmethod
    def reset(self) -> None:
        """Remove every message from the store."""

    def __enter__(self) -> "Store":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def mid_from_key(key: str) -> int:
    """Return the message id held in a key of the form ``X.<id>``."""
    digits = key[2:]
    if not _MID_PATTERN.fullmatch(digits):
        raise ValueError(f"invalid message id in store key {key!r}")
    mid = int(digits)
    if mid > _MAX_MID:
        raise ValueError(f"message id out of range in store key {key!r}")
    return mid


def is_key_outbound(key: str) -> bool:
    """Return True if the key has the outbound prefix."""
    return key[:2] == OUTBOUND_PREFIX


def is_key_inbound(key: str) -> bool:
    """Return True if the key has the inbound prefix."""
    return key[:2] == INBOUND_PREFIX


def inbound_key_from_mid(mid: int) -> str:
    """Return the inbound key ``i.<id>``."""
    return f"{INBOUND_PREFIX}{mid}"


def outbound_key_from_mid(mid: int) -> str:
    """Return the outbound key ``o.<id>``."""
    return f"{OUTBOUND_PREFIX}{mid}"