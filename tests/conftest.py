"""Shared fixtures: an in-memory HSM backed by real P-256 keys."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from yubihsm_manager.config import HsmConfig
from yubihsm_manager.const import DEFAULT_AUTH_KEY_ID, DEFAULT_SIGNING_KEY_ID
from yubihsm_manager.core.crypto import get_public_key_bytes
from yubihsm_manager.core.errors import AuthenticationFailedError, DeviceError
from yubihsm_manager.core.hsm_interface import HsmConnection, HsmInterface
from yubihsm_manager.core.models import ObjectDescriptor, ObjectInfo, ObjectType
from yubihsm_manager.core.session_manager import HsmSessionManager

AUTH_KEY_ID = DEFAULT_AUTH_KEY_ID
SIGNING_KEY_ID = DEFAULT_SIGNING_KEY_ID


@dataclass
class FakeObject:
    """One object stored in the fake HSM."""

    info: ObjectInfo
    private_key: ec.EllipticCurvePrivateKey | None = None


@dataclass
class FakeHsm(HsmInterface):
    """HsmInterface double that records every remote call."""

    objects: dict[int, FakeObject] = field(default_factory=dict)
    calls: list[tuple] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)
    # "raw" returns x || y like the device, "sec1" prefixes 0x04
    public_key_format: str = "raw"
    closed: bool = False

    def add_auth_key(self, object_id: int, label: str = "DEFAULT AUTHKEY") -> None:
        self.objects[object_id] = FakeObject(
            info=ObjectInfo(
                object_id=object_id,
                object_type=ObjectType.AUTHENTICATION_KEY,
                algorithm="AES128_YUBICO_AUTHENTICATION",
                label=label,
                sequence=0,
            )
        )

    def add_ec_key(self, object_id: int, label: str = "signing key") -> ec.EllipticCurvePrivateKey:
        private_key = ec.generate_private_key(ec.SECP256R1())
        self.objects[object_id] = FakeObject(
            info=ObjectInfo(
                object_id=object_id,
                object_type=ObjectType.ASYMMETRIC_KEY,
                algorithm="EC_P256",
                label=label,
                sequence=1,
            ),
            private_key=private_key,
        )
        return private_key

    def _record(self, name: str, *args: object) -> None:
        self.calls.append((name, *args))
        if name in self.failures:
            raise DeviceError(self.failures[name])

    def _key(self, key_id: int) -> ec.EllipticCurvePrivateKey:
        obj = self.objects.get(key_id)
        if obj is None or obj.private_key is None:
            raise DeviceError("ObjectNotFound")
        return obj.private_key

    @property
    def is_connected(self) -> bool:
        return not self.closed

    def sign_prehash(self, key_id: int, digest: bytes) -> bytes:
        self._record("sign_prehash", key_id, digest)
        return self._key(key_id).sign(digest, ec.ECDSA(Prehashed(hashes.SHA256())))

    def get_public_key(self, key_id: int) -> bytes:
        self._record("get_public_key", key_id)
        point = get_public_key_bytes(self._key(key_id).public_key())
        return point if self.public_key_format == "sec1" else point[1:]

    def list_objects(self) -> list[ObjectDescriptor]:
        self._record("list_objects")
        return [
            ObjectDescriptor(object_id=obj.info.object_id, object_type=obj.info.object_type)
            for obj in self.objects.values()
        ]

    def get_object_info(self, object_id: int, object_type: ObjectType) -> ObjectInfo:
        self._record("get_object_info", object_id, object_type)
        obj = self.objects.get(object_id)
        if obj is None or obj.info.object_type != object_type:
            raise DeviceError("ObjectNotFound")
        return obj.info

    def delete_object(self, object_id: int, object_type: ObjectType) -> None:
        self._record("delete_object", object_id, object_type)
        obj = self.objects.get(object_id)
        if obj is None or obj.info.object_type != object_type:
            raise DeviceError("ObjectNotFound")
        del self.objects[object_id]

    def close(self) -> None:
        self.calls.append(("close",))
        self.closed = True

    def remote_calls(self) -> list[tuple]:
        return [call for call in self.calls if call[0] != "close"]


@pytest.fixture
def fake_hsm() -> FakeHsm:
    """A fake HSM with one auth key and one P-256 signing key."""
    hsm = FakeHsm()
    hsm.add_auth_key(AUTH_KEY_ID)
    hsm.add_ec_key(SIGNING_KEY_ID)
    return hsm


@pytest.fixture
def connection(fake_hsm: FakeHsm) -> HsmConnection:
    return HsmConnection(fake_hsm)


class FakeClientFactory:
    """Client factory that accepts one password and hands out fake devices."""

    def __init__(self, password: str = "password") -> None:
        self.password = password
        self.opened: list[FakeHsm] = []
        self.configs: list[HsmConfig] = []

    def __call__(self, config: HsmConfig) -> FakeHsm:
        self.configs.append(config)
        if config.password.get_secret_value() != self.password:
            raise AuthenticationFailedError("AuthenticationFailed")
        hsm = FakeHsm()
        hsm.add_auth_key(config.auth_key_id)
        hsm.add_ec_key(SIGNING_KEY_ID)
        self.opened.append(hsm)
        return hsm


@pytest.fixture
def client_factory() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def session_manager(client_factory: FakeClientFactory) -> HsmSessionManager:
    return HsmSessionManager(client_factory)
