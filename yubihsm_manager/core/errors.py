"""Error types raised by the YubiHSM manager core."""

from __future__ import annotations

from typing import ClassVar


class HsmError(Exception):
    """Base class for every failure surfaced by the core.

    The ``detail`` carries the underlying device or validation message as an
    opaque string; structured device error codes are not recovered.
    """

    label: ClassVar[str] = "HSM error"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"{self.label}: {detail}")

    @property
    def kind(self) -> str:
        """Name of the error kind, e.g. ``SigningFailed``."""
        return type(self).__name__.removesuffix("Error")


class AuthenticationFailedError(HsmError):
    label = "Authentication failed"


class SigningFailedError(HsmError):
    label = "Signing failed"


class VerificationFailedError(HsmError):
    """Adapter-level verification fault.

    A well-formed signature that does not verify is reported as ``False``,
    never with this error.
    """

    label = "Verification failed"


class ListingFailedError(HsmError):
    label = "Listing failed"


class DeletionFailedError(HsmError):
    label = "Deletion failed"


class InvalidKeyError(HsmError):
    label = "Invalid key"


class InvalidInputError(HsmError):
    label = "Invalid input"


class GetPublicKeyFailedError(HsmError):
    label = "Failed to get public key"


class ConfigError(HsmError):
    label = "Invalid configuration"


class DeviceError(Exception):
    """Failure reported by the device transport for a single remote call."""
