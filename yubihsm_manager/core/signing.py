"""ECDSA P-256 signing and verification against keys held in the HSM."""

from __future__ import annotations

import logging

from .crypto import load_public_key, sha256_digest, verify_prehashed
from .errors import (
    DeviceError,
    InvalidInputError,
    InvalidKeyError,
    SigningFailedError,
    VerificationFailedError,
)
from .hsm_interface import HsmConnection

_LOGGER = logging.getLogger(__name__)


def sign(connection: HsmConnection, key_id: int, message: bytes) -> bytes:
    """Sign a message with an ECDSA key stored in the HSM.

    The message is hashed with SHA-256 locally and only the digest is sent
    to the device.

    Args:
        connection: The active session connection.
        key_id: Object id of the P-256 asymmetric key.
        message: The message to sign, must not be empty.

    Returns:
        The signature bytes exactly as produced by the device.
    """
    if not message:
        raise InvalidInputError("Data cannot be empty")

    digest = sha256_digest(message)
    _LOGGER.debug("Signing digest %s with key 0x%04x", digest.hex(), key_id)

    with connection.acquire(SigningFailedError) as device:
        try:
            signature = device.sign_prehash(key_id, digest)
        except DeviceError as err:
            _LOGGER.error("Signing with key 0x%04x failed: %s", key_id, err)
            raise SigningFailedError(str(err)) from err

    _LOGGER.debug("Key 0x%04x produced a %d byte signature", key_id, len(signature))
    return signature


def verify(
    connection: HsmConnection, key_id: int, message: bytes, signature: bytes
) -> bool:
    """Verify a signature over a message with the public key of an HSM key.

    Malformed input raises an error; a well-formed signature that does not
    match the message returns False.

    Args:
        connection: The active session connection.
        key_id: Object id of the P-256 asymmetric key.
        message: The signed message, must not be empty.
        signature: DER or raw (r || s) signature bytes.

    Returns:
        True if the signature is valid for the message, False otherwise.
    """
    if not message:
        raise InvalidInputError("Data cannot be empty")

    digest = sha256_digest(message)

    with connection.acquire(VerificationFailedError) as device:
        try:
            public_key_bytes = device.get_public_key(key_id)
        except DeviceError as err:
            _LOGGER.error("Fetching public key 0x%04x failed: %s", key_id, err)
            raise InvalidKeyError(f"Failed to get public key: {err}") from err

    public_key = load_public_key(public_key_bytes)
    valid = verify_prehashed(public_key, digest, signature)
    _LOGGER.debug(
        "Signature check with key 0x%04x: %s", key_id, "valid" if valid else "invalid"
    )
    return valid
