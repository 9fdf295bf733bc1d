"""Tests for the yubihsm backed client, with the library mocked out."""

import struct
from unittest.mock import MagicMock, patch

import pytest
from usb.core import NoBackendError
from yubihsm.defs import ALGORITHM, COMMAND, OBJECT
from yubihsm.exceptions import YubiHsmError

from yubihsm_manager.config import HsmConfig
from yubihsm_manager.core.errors import AuthenticationFailedError, DeviceError
from yubihsm_manager.core.models import ObjectType
from yubihsm_manager.hsm_client import YubiHsmClient


@pytest.fixture
def mock_session():
    return MagicMock()


@pytest.fixture
def client(mock_session):
    return YubiHsmClient(MagicMock(), mock_session)


def test_open_authenticates():
    """Test open connects to the URL and derives the session key."""
    hsm = MagicMock()
    with patch("yubihsm_manager.hsm_client.YubiHsm.connect", return_value=hsm) as connect:
        client = YubiHsmClient.open(HsmConfig(auth_key_id=2, password="secret"))

    connect.assert_called_once_with("yhusb://")
    hsm.create_session_derived.assert_called_once_with(2, "secret")
    assert client.is_connected


def test_open_rejected_credential():
    """Test a rejected password closes the device and raises."""
    hsm = MagicMock()
    hsm.create_session_derived.side_effect = YubiHsmError("authentication failed")
    with patch("yubihsm_manager.hsm_client.YubiHsm.connect", return_value=hsm):
        with pytest.raises(AuthenticationFailedError):
            YubiHsmClient.open(HsmConfig())
    hsm.close.assert_called_once()


def test_open_no_device():
    with patch(
        "yubihsm_manager.hsm_client.YubiHsm.connect",
        side_effect=YubiHsmError("no device"),
    ):
        with pytest.raises(AuthenticationFailedError, match="no device"):
            YubiHsmClient.open(HsmConfig())


def test_sign_prehash_sends_raw_command(client, mock_session):
    """Test the digest is sent unmodified after the key id."""
    mock_session.send_secure_cmd.return_value = b"\x30\x44sig"
    digest = bytes(range(32))

    assert client.sign_prehash(0xF35B, digest) == b"\x30\x44sig"
    mock_session.send_secure_cmd.assert_called_once_with(
        COMMAND.SIGN_ECDSA, struct.pack("!H", 0xF35B) + digest
    )


def test_get_public_key_strips_algorithm(client, mock_session):
    mock_session.send_secure_cmd.return_value = bytes([12]) + b"\x11" * 64

    assert client.get_public_key(0xF35B) == b"\x11" * 64


def test_list_objects(client, mock_session):
    mock_session.list_objects.return_value = [
        MagicMock(id=1, object_type=OBJECT.AUTHENTICATION_KEY),
        MagicMock(id=0xF35B, object_type=OBJECT.ASYMMETRIC_KEY),
    ]

    descriptors = client.list_objects()

    assert [(d.object_id, d.object_type) for d in descriptors] == [
        (1, ObjectType.AUTHENTICATION_KEY),
        (0xF35B, ObjectType.ASYMMETRIC_KEY),
    ]


def test_get_object_info(client, mock_session):
    mock_session.get_object.return_value.get_info.return_value = MagicMock(
        id=0xF35B,
        object_type=OBJECT.ASYMMETRIC_KEY,
        algorithm=ALGORITHM.EC_P256,
        label="signing key",
        sequence=4,
    )

    info = client.get_object_info(0xF35B, ObjectType.ASYMMETRIC_KEY)

    mock_session.get_object.assert_called_once_with(0xF35B, OBJECT.ASYMMETRIC_KEY)
    assert info.algorithm == "EC_P256"
    assert info.label == "signing key"
    assert info.sequence == 4


def test_device_errors_are_wrapped(client, mock_session):
    mock_session.send_secure_cmd.side_effect = YubiHsmError("OBJECT_NOT_FOUND")
    with pytest.raises(DeviceError, match="OBJECT_NOT_FOUND"):
        client.sign_prehash(0x0001, b"\x00" * 32)


def test_delete_and_close(client, mock_session):
    client.delete_object(0x0010, ObjectType.OPAQUE)
    mock_session.get_object.assert_called_once_with(0x0010, OBJECT.OPAQUE)
    mock_session.get_object.return_value.delete.assert_called_once()

    client.close()
    client.close()
    mock_session.close.assert_called_once()
    assert not client.is_connected
    with pytest.raises(DeviceError, match="closed"):
        client.list_objects()


def test_open_no_usb_backend():
    """Test a missing libusb backend is an authentication failure."""
    with patch(
        "yubihsm_manager.hsm_client.YubiHsm.connect",
        side_effect=NoBackendError("No backend available"),
    ):
        with pytest.raises(AuthenticationFailedError, match="No backend available"):
            YubiHsmClient.open(HsmConfig())


def test_get_public_key_empty_response(client, mock_session):
    mock_session.send_secure_cmd.return_value = b""

    with pytest.raises(DeviceError, match="Empty public key response"):
        client.get_public_key(0xF35B)
