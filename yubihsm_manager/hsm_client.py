"""YubiHSM 2 client implementation backed by the yubihsm library."""

from __future__ import annotations

import logging
import struct

from usb.core import NoBackendError
from yubihsm import YubiHsm
from yubihsm.core import AuthSession
from yubihsm.defs import COMMAND, OBJECT
from yubihsm.exceptions import YubiHsmError

from .config import HsmConfig
from .core.errors import AuthenticationFailedError, DeviceError
from .core.hsm_interface import HsmInterface
from .core.models import ObjectDescriptor, ObjectInfo, ObjectType

_LOGGER = logging.getLogger(__name__)


def _to_object_type(value: OBJECT) -> ObjectType:
    try:
        return ObjectType(int(value))
    except ValueError as err:
        raise DeviceError(f"Unsupported object type {value!r}") from err


def _label_to_str(label: str | bytes) -> str:
    if isinstance(label, bytes):
        return label.rstrip(b"\0").decode("utf-8", errors="replace")
    return label


class YubiHsmClient(HsmInterface):
    """Concrete implementation of HsmInterface for a YubiHSM 2.

    Talks to the device through a connector URL: ``yhusb://`` for direct USB
    access or ``http://host:port`` for yubihsm-connector.
    """

    def __init__(self, hsm: YubiHsm, session: AuthSession) -> None:
        """Initialize the client from an already authenticated session.

        Args:
            hsm: The device handle.
            session: The authenticated session opened on ``hsm``.
        """
        self._hsm = hsm
        self._session: AuthSession | None = session

    @classmethod
    def open(cls, config: HsmConfig) -> YubiHsmClient:
        """Connect to the device and authenticate with a derived password.

        Args:
            config: Connection settings.

        Returns:
            A client holding an authenticated session.
        """
        _LOGGER.debug("Connecting to YubiHSM at %s", config.connector_url)
        try:
            hsm = YubiHsm.connect(config.connector_url)
        except (YubiHsmError, OSError, NoBackendError) as err:
            _LOGGER.error("Could not reach YubiHSM at %s: %s", config.connector_url, err)
            raise AuthenticationFailedError(f"{err!r}") from err

        try:
            session = hsm.create_session_derived(
                config.auth_key_id, config.password.get_secret_value()
            )
        except (YubiHsmError, OSError, NoBackendError) as err:
            hsm.close()
            raise AuthenticationFailedError(f"{err!r}") from err

        _LOGGER.info("Opened YubiHSM session with auth key 0x%04x", config.auth_key_id)
        return cls(hsm, session)

    @property
    def is_connected(self) -> bool:
        return self._session is not None

    def _require_session(self) -> AuthSession:
        if self._session is None:
            raise DeviceError("Session is closed")
        return self._session

    def sign_prehash(self, key_id: int, digest: bytes) -> bytes:
        session = self._require_session()
        # Raw SIGN_ECDSA: the device signs the digest as given, no hashing
        payload = struct.pack("!H", key_id) + digest
        try:
            return session.send_secure_cmd(COMMAND.SIGN_ECDSA, payload)
        except YubiHsmError as err:
            raise DeviceError(f"{err!r}") from err

    def get_public_key(self, key_id: int) -> bytes:
        session = self._require_session()
        try:
            response = session.send_secure_cmd(
                COMMAND.GET_PUBLIC_KEY, struct.pack("!H", key_id)
            )
        except YubiHsmError as err:
            raise DeviceError(f"{err!r}") from err

        if not response:
            raise DeviceError(f"Empty public key response for 0x{key_id:04x}")

        # First byte is the key algorithm, the rest is the raw key
        _LOGGER.debug(
            "Public key 0x%04x: algorithm %d, %d bytes",
            key_id,
            response[0],
            len(response) - 1,
        )
        return bytes(response[1:])

    def list_objects(self) -> list[ObjectDescriptor]:
        session = self._require_session()
        try:
            objects = session.list_objects()
        except YubiHsmError as err:
            raise DeviceError(f"{err!r}") from err

        return [
            ObjectDescriptor(
                object_id=obj.id, object_type=_to_object_type(obj.object_type)
            )
            for obj in objects
        ]

    def get_object_info(self, object_id: int, object_type: ObjectType) -> ObjectInfo:
        session = self._require_session()
        try:
            info = session.get_object(object_id, OBJECT(int(object_type))).get_info()
        except YubiHsmError as err:
            raise DeviceError(f"{err!r}") from err

        return ObjectInfo(
            object_id=info.id,
            object_type=_to_object_type(info.object_type),
            algorithm=info.algorithm.name,
            label=_label_to_str(info.label),
            sequence=info.sequence,
        )

    def delete_object(self, object_id: int, object_type: ObjectType) -> None:
        session = self._require_session()
        try:
            session.get_object(object_id, OBJECT(int(object_type))).delete()
        except YubiHsmError as err:
            raise DeviceError(f"{err!r}") from err

    def close(self) -> None:
        session, self._session = self._session, None
        if session is None:
            return
        _LOGGER.debug("Closing YubiHSM session")
        try:
            session.close()
        except YubiHsmError as err:
            _LOGGER.warning("Error during session close: %s", err)
        finally:
            self._hsm.close()
