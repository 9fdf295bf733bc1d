"""Coordinator tying the session manager to the HSM operations."""

from __future__ import annotations

import logging

from .config import HsmConfig
from .core.deletion import delete_object
from .core.errors import InvalidInputError
from .core.inventory import format_summaries, list_summaries
from .core.models import ObjectSummary, ObjectType
from .core.session_manager import HsmSessionManager
from .core.signing import sign, verify
from .hsm_client import YubiHsmClient

_LOGGER = logging.getLogger(__name__)


def _as_bytes(message: str | bytes) -> bytes:
    if isinstance(message, str):
        return message.encode("utf-8")
    return bytes(message)


class HsmCoordinator:
    """Entry point used by a presentation layer.

    All inputs and results are plain values; errors are raised as
    :class:`~.core.errors.HsmError` subclasses and never tear down the
    session.
    """

    def __init__(
        self,
        config: HsmConfig | None = None,
        session_manager: HsmSessionManager | None = None,
    ) -> None:
        """Initialize the coordinator."""
        self.config = config or HsmConfig()
        self.session_manager = session_manager or HsmSessionManager(YubiHsmClient.open)

    @property
    def is_authenticated(self) -> bool:
        return self.session_manager.is_authenticated()

    @property
    def last_signature(self) -> bytes | None:
        return self.session_manager.last_signature

    def authenticate(self, password: str | None = None) -> None:
        """Open a session with the configured auth key.

        Args:
            password: Overrides the configured password when given.
        """
        config = self.config if password is None else self.config.with_password(password)
        self.session_manager.connect(config)

    def disconnect(self) -> None:
        self.session_manager.disconnect()

    def sign_message(self, message: str | bytes) -> bytes:
        """Sign a message with the configured signing key.

        The signature also becomes the session's last signature.
        """
        connection = self.session_manager.active_client()
        signature = sign(connection, self.config.signing_key_id, _as_bytes(message))
        self.session_manager.store_signature(signature, connection)
        return signature

    def verify_message(
        self, message: str | bytes, signature: bytes | None = None
    ) -> bool:
        """Verify a message against a signature.

        Uses the last signature of the session when ``signature`` is omitted.
        """
        data = _as_bytes(message)
        if not data:
            raise InvalidInputError("Data cannot be empty")

        connection = self.session_manager.active_client()
        if signature is None:
            signature = self.session_manager.last_signature
        if signature is None:
            raise InvalidInputError("No signature to verify. Sign text first.")

        return verify(connection, self.config.signing_key_id, data, signature)

    def clear_signature(self) -> None:
        self.session_manager.clear_signature()

    def list_keys(self) -> list[ObjectSummary]:
        return list_summaries(self.session_manager.active_client())

    def describe_keys(self) -> str:
        return format_summaries(self.list_keys())

    def delete_key(self, object_id: int, object_type: ObjectType | int) -> None:
        """Delete an object; authentication keys are always refused."""
        connection = self.session_manager.active_client()
        delete_object(connection, object_id, object_type)
        _LOGGER.debug("Object 0x%04x removed, listings must be refreshed", object_id)
