"""Thread-safe tracking of a client's connection status.

Only ``DISCONNECTED`` and ``CONNECTED`` are static states. Every other state
is owned by whoever moved the status into it. That owner holds a completion
function that moves the status on. The state may always be moved to
``DISCONNECTING``, which makes any pending move to ``CONNECTED`` fail.

Standard workflows::

    DISCONNECTED -> connecting() -> CONNECTING -> complete(True) -> CONNECTED
    CONNECTED -> disconnecting() -> DISCONNECTING -> complete() -> DISCONNECTED
    CONNECTED -> connection_lost(False) -> DISCONNECTING -> handled(...) -> DISCONNECTED
    CONNECTED -> connection_lost(True) -> DISCONNECTING -> handled(True)
              -> RECONNECTING -> complete(True) -> CONNECTED

If ``disconnecting()`` or ``connection_lost()`` is called while a transition
is in progress, the call sets the status to ``DISCONNECTING``. It then blocks
until the active transition completes.
"""

from __future__ import annotations

import threading
from enum import IntEnum
from typing import Callable, Optional


class Status(IntEnum):
    """Connection states."""

    DISCONNECTED = 0
    DISCONNECTING = 1
    CONNECTING = 2
    RECONNECTING = 3
    CONNECTED = 4

    def __str__(self) -> str:
        return self.name.lower()


class StatusError(Exception):
    """Base class for rejected status transitions."""

    message = "invalid status transition"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)


class AbortConnectionError(StatusError):
    message = "disconnect called whist connection attempt in progress"


class AlreadyConnectedOrReconnectingError(StatusError):
    message = "status is already connected or reconnecting"


class StatusMustBeDisconnectedError(StatusError):
    message = "status can only transition to connecting from disconnected"


class AlreadyDisconnectedError(StatusError):
    message = "status is already disconnected"


class DisconnectionRequestedError(StatusError):
    message = "disconnection was requested whilst the action was in progress"


class DisconnectionInProgressError(StatusError):
    message = "disconnection already in progress"


ConnCompleted = Callable[[bool], None]
DisconnectCompleted = Callable[[], None]
ConnectionLostHandled = Callable[[bool], Optional[ConnCompleted]]


class ConnectionStatus:
    """Owns the connection status and controls every change to it."""

    def __init__(self, status: Status = Status.DISCONNECTED) -> None:
        self._lock = threading.Lock()
        self._status = Status(status)
        # Only meaningful while DISCONNECTING: a reconnect is intended.
        self._will_reconnect = False
        # Set when the transitional operation that currently owns the status ends.
        self._action_completed: Optional[threading.Event] = None

    def status(self) -> Status:
        """Return the current status (which may change at any moment)."""
        with self._lock:
            return self._status

    def status_retry(self) -> tuple[Status, bool]:
        """Return the current status and whether a reconnect is expected."""
        with self._lock:
            return self._status, self._will_reconnect

    def connecting(self) -> ConnCompleted:
        """Move from DISCONNECTED to CONNECTING.

        Returns a function to be called with the outcome once the attempt ends.
        """
        with self._lock:
            if self._status in (Status.CONNECTED, Status.RECONNECTING):
                raise AlreadyConnectedOrReconnectingError()
            if self._status != Status.DISCONNECTED:
                raise StatusMustBeDisconnectedError()
            self._status = Status.CONNECTING
            self._action_completed = threading.Event()
            return self._connected

    def _connected(self, success: bool) -> None:
        with self._lock:
            try:
                if self._status == Status.DISCONNECTING:
                    raise AbortConnectionError()
                self._status = Status.CONNECTED if success else Status.DISCONNECTED
            finally:
                self._finish_action()

    def disconnecting(self) -> DisconnectCompleted:
        """Begin disconnection from any status.

        Blocks while a connection attempt is still in progress. Returns a
        function to call once clean-up is complete.
        """
        self._lock.acquire()
        try:
            if self._status == Status.DISCONNECTED:
                raise AlreadyDisconnectedError()
            if self._status == Status.DISCONNECTING:
                self._will_reconnect = False
                done = self._action_completed
                self._lock.release()
                try:
                    if done is not None:
                        done.wait()
                finally:
                    self._lock.acquire()
                raise AlreadyDisconnectedError()

            previous = self._status
            self._status = Status.DISCONNECTING

            if previous in (Status.CONNECTING, Status.RECONNECTING):
                done = self._action_completed
                self._lock.release()
                try:
                    if done is not None:
                        done.wait()
                finally:
                    self._lock.acquire()
                if previous == Status.RECONNECTING and not self._will_reconnect:
                    raise AlreadyDisconnectedError()

            self._action_completed = threading.Event()
            return self._disconnection_completed
        finally:
            self._lock.release()

    def _disconnection_completed(self) -> None:
        with self._lock:
            self._status = Status.DISCONNECTED
            self._finish_action()

    def connection_lost(self, will_reconnect: bool) -> ConnectionLostHandled:
        """Record that the connection was lost.

        The returned function is called when clean-up is done. It returns a
        completion function for the reconnect, or None when no reconnect follows.
        """
        self._lock.acquire()
        try:
            if self._status == Status.DISCONNECTED:
                raise AlreadyDisconnectedError()
            if self._status == Status.DISCONNECTING:
                raise DisconnectionInProgressError()

            self._will_reconnect = will_reconnect
            previous = self._status
            self._status = Status.DISCONNECTING

            if previous in (Status.CONNECTING, Status.RECONNECTING):
                done = self._action_completed
                self._lock.release()
                try:
                    if done is not None:
                        done.wait()
                finally:
                    self._lock.acquire()
                if not will_reconnect:
                    raise AlreadyDisconnectedError()

            self._action_completed = threading.Event()
            return self._connection_lost_handler(will_reconnect)
        finally:
            self._lock.release()

    def _connection_lost_handler(self, reconnect_requested: bool) -> ConnectionLostHandled:
        def handled(proceed: bool) -> Optional[ConnCompleted]:
            with self._lock:
                if not self._will_reconnect or not proceed:
                    self._status = Status.DISCONNECTED
                    self._finish_action()
                    if not reconnect_requested or not proceed:
                        return None
                    raise DisconnectionRequestedError()
                self._status = Status.RECONNECTING
                # The pending event stays live and is set by _connected.
                return self._connected

        return handled

    def force_status(self, status: Status) -> None:
        """Set the status unconditionally; only for recovery and tests."""
        with self._lock:
            self._status = Status(status)

    def _finish_action(self) -> None:
        if self._action_completed is not None:
            self._action_completed.set()
        self._action_completed = None