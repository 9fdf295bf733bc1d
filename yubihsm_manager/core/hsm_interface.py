"""Interface for YubiHSM device access."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager

from .errors import HsmError
from .models import ObjectDescriptor, ObjectInfo, ObjectType

_LOGGER = logging.getLogger(__name__)


class HsmInterface(ABC):
    """Abstract base class for an authenticated HSM session.

    Every remote call is blocking. Implementations raise
    :class:`~.errors.DeviceError` when the device or transport reports a
    failure.
    """

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the underlying session is still open."""

    @abstractmethod
    def sign_prehash(self, key_id: int, digest: bytes) -> bytes:
        """Sign an already hashed message with an ECDSA key.

        Args:
            key_id: Object id of the asymmetric key.
            digest: The 32-byte SHA-256 digest to sign.

        Returns:
            The signature bytes exactly as returned by the device.
        """

    @abstractmethod
    def get_public_key(self, key_id: int) -> bytes:
        """Fetch the raw public key bytes of an asymmetric key.

        Args:
            key_id: Object id of the asymmetric key.

        Returns:
            The device-native public key bytes (x || y for EC keys).
        """

    @abstractmethod
    def list_objects(self) -> list[ObjectDescriptor]:
        """List every object visible to the authentication key."""

    @abstractmethod
    def get_object_info(self, object_id: int, object_type: ObjectType) -> ObjectInfo:
        """Read the metadata of a single object."""

    @abstractmethod
    def delete_object(self, object_id: int, object_type: ObjectType) -> None:
        """Delete an object from the device."""

    @abstractmethod
    def close(self) -> None:
        """Close the session and release the transport."""


class HsmConnection:
    """Exclusive access guard around one :class:`HsmInterface`.

    At most one remote call runs at a time; concurrent callers serialize on
    the lock. Once closed, the connection refuses any further access.
    """

    def __init__(self, device: HsmInterface) -> None:
        self._device = device
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @contextmanager
    def acquire(self, error_cls: type[HsmError]) -> Iterator[HsmInterface]:
        """Borrow the device for the duration of one call.

        A connection closed while the caller waited on the lock is reported
        as ``error_cls`` rather than handed out.

        Args:
            error_cls: Error kind raised if the device cannot be borrowed.

        Yields:
            The underlying device, valid only inside the ``with`` block.
        """
        with self._lock:
            if self._closed or not self._device.is_connected:
                raise error_cls("Session is closed")
            yield self._device

    def close(self) -> None:
        """Close the device session. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                self._device.close()
            except Exception as err:  # pylint: disable=broad-except
                _LOGGER.warning("Error while closing HSM session: %s", err)
