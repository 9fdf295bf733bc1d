"""Sign, verify and manage objects on a YubiHSM 2."""

from __future__ import annotations

from .config import HsmConfig
from .coordinator import HsmCoordinator
from .core.deletion import delete_object
from .core.errors import (
    AuthenticationFailedError,
    ConfigError,
    DeletionFailedError,
    DeviceError,
    GetPublicKeyFailedError,
    HsmError,
    InvalidInputError,
    InvalidKeyError,
    ListingFailedError,
    SigningFailedError,
    VerificationFailedError,
)
from .core.hsm_interface import HsmConnection, HsmInterface
from .core.inventory import (
    format_summaries,
    get_object_info,
    get_public_key,
    list_summaries,
)
from .core.models import ObjectDescriptor, ObjectInfo, ObjectSummary, ObjectType
from .core.session_manager import HsmSessionManager
from .core.signing import sign, verify
from .hsm_client import YubiHsmClient

__all__ = [
    "AuthenticationFailedError",
    "ConfigError",
    "DeletionFailedError",
    "DeviceError",
    "GetPublicKeyFailedError",
    "HsmConfig",
    "HsmConnection",
    "HsmCoordinator",
    "HsmError",
    "HsmInterface",
    "HsmSessionManager",
    "InvalidInputError",
    "InvalidKeyError",
    "ListingFailedError",
    "ObjectDescriptor",
    "ObjectInfo",
    "ObjectSummary",
    "ObjectType",
    "SigningFailedError",
    "VerificationFailedError",
    "YubiHsmClient",
    "delete_object",
    "format_summaries",
    "get_object_info",
    "get_public_key",
    "list_summaries",
    "sign",
    "verify",
]
