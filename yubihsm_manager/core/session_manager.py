from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError

from ..config import HsmConfig
from .errors import AuthenticationFailedError, DeviceError, InvalidInputError
from .hsm_interface import HsmConnection, HsmInterface

_LOGGER = logging.getLogger(__name__)

ClientFactory = Callable[[HsmConfig], HsmInterface]


class HsmSession(BaseModel):
    """State of the single authenticated session to the device."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    auth_key_id: int
    credential: SecretStr
    connection: HsmConnection
    established_at: float = Field(default_factory=time.time)
    last_signature: bytes | None = None


class HsmSessionManager:
    """Owns at most one authenticated device session.

    Every operation that needs the device goes through :meth:`active_client`.
    The returned connection is only borrowed for one call; after
    :meth:`disconnect` it refuses any further use.
    """

    def __init__(self, client_factory: ClientFactory) -> None:
        """Initialize the session manager.

        Args:
            client_factory: Opens an authenticated device session for a
                configuration, raising ``AuthenticationFailedError`` on failure.
        """
        self._client_factory = client_factory
        self._session: HsmSession | None = None
        self._state_lock = threading.Lock()

    def connect(
        self,
        config: HsmConfig | None = None,
        *,
        auth_key_id: int | None = None,
        password: str | None = None,
    ) -> None:
        """Authenticate and make the new session active.

        Either pass a full ``config`` or the ``auth_key_id``/``password``
        pair, which is layered over the default configuration. An existing
        session is only replaced once the new one is open; a failed attempt
        leaves it untouched.
        """
        if config is None:
            overrides: dict[str, Any] = {}
            if auth_key_id is not None:
                overrides["auth_key_id"] = auth_key_id
            if password is not None:
                overrides["password"] = password
            try:
                config = HsmConfig(**overrides)
            except ValidationError as err:
                raise AuthenticationFailedError(
                    f"Invalid credentials: {err.errors()[0]['msg']}"
                ) from err

        _LOGGER.debug(
            "Opening HSM session with auth key 0x%04x via %s",
            config.auth_key_id,
            config.connector_url,
        )
        try:
            device = self._client_factory(config)
        except AuthenticationFailedError:
            _LOGGER.warning(
                "Authentication with auth key 0x%04x failed", config.auth_key_id
            )
            raise
        except DeviceError as err:
            _LOGGER.warning(
                "Authentication with auth key 0x%04x failed: %s", config.auth_key_id, err
            )
            raise AuthenticationFailedError(str(err)) from err

        new_session = HsmSession(
            auth_key_id=config.auth_key_id,
            credential=config.password,
            connection=HsmConnection(device),
        )
        with self._state_lock:
            previous, self._session = self._session, new_session

        if previous is not None:
            _LOGGER.debug("Closing previous session for auth key 0x%04x", previous.auth_key_id)
            previous.connection.close()

        _LOGGER.info("Authenticated to HSM with auth key 0x%04x", config.auth_key_id)

    def is_authenticated(self) -> bool:
        """Check if an active session is held."""
        return self._session is not None

    def active_client(self) -> HsmConnection:
        """Get the connection of the active session."""
        session = self._session
        if session is None:
            raise AuthenticationFailedError("No active session")
        return session.connection

    def disconnect(self) -> None:
        """Drop the active session, if any."""
        with self._state_lock:
            session, self._session = self._session, None

        if session is None:
            return

        session.last_signature = None
        session.connection.close()
        _LOGGER.info("Disconnected HSM session for auth key 0x%04x", session.auth_key_id)

    def session_info(self) -> dict[str, Any] | None:
        """Return a redacted description of the active session."""
        session = self._session
        if session is None:
            return None
        return {
            "auth_key_id": session.auth_key_id,
            "established_at": session.established_at,
            "has_signature": session.last_signature is not None,
        }

    # --- LAST SIGNATURE BUFFER ---

    def _require_session(self) -> HsmSession:
        session = self._session
        if session is None:
            raise AuthenticationFailedError("No active session")
        return session

    @property
    def last_signature(self) -> bytes | None:
        """The most recent signature produced in this session."""
        session = self._session
        return session.last_signature if session is not None else None

    def store_signature(
        self, signature: bytes, connection: HsmConnection | None = None
    ) -> None:
        """Replace the last signature buffer.

        When ``connection`` is given, the signature is only kept if that
        connection still belongs to the active session.
        """
        if not signature:
            raise InvalidInputError("Signature cannot be empty")
        if connection is not None:
            session = self._session
            if session is None or session.connection is not connection:
                _LOGGER.debug("Session changed while signing, signature not stored")
                return
        else:
            session = self._require_session()
        session.last_signature = bytes(signature)

    def clear_signature(self) -> None:
        """Forget the last signature."""
        session = self._session
        if session is not None:
            session.last_signature = None
