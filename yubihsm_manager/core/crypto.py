from __future__ import annotations

import logging
from typing import Final

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    Prehashed,
    decode_dss_signature,
    encode_dss_signature,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from .errors import InvalidInputError, InvalidKeyError

_LOGGER = logging.getLogger(__name__)

# Only NIST P-256 (SECP256R1) keys are supported
CURVE: Final = ec.SECP256R1()
CURVE_ORDER: Final = 0xFFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551
SCALAR_SIZE: Final = 32
RAW_PUBLIC_KEY_SIZE: Final = 64  # x || y
PUBLIC_KEY_SIZE: Final = 65  # Uncompressed: 0x04 + 32 bytes X + 32 bytes Y
RAW_SIGNATURE_SIZE: Final = 64  # r || s
DIGEST_SIZE: Final = 32

SEC1_UNCOMPRESSED_TAG: Final = 0x04
DER_SEQUENCE_TAG: Final = 0x30


def sha256_digest(data: bytes) -> bytes:
    """Compute the SHA-256 digest of a message.

    Args:
        data: The message bytes.

    Returns:
        The 32-byte digest.
    """
    digest = hashes.Hash(hashes.SHA256())
    digest.update(data)
    return digest.finalize()


def load_public_key(public_key_bytes: bytes) -> ec.EllipticCurvePublicKey:
    """Load a P-256 public key from device bytes.

    Accepts the 65-byte uncompressed SEC1 point (0x04 || x || y) or the
    64-byte raw form (x || y) the device usually returns.

    Args:
        public_key_bytes: The public key as returned by the device.

    Returns:
        The public key object.
    """
    size = len(public_key_bytes)
    if size == PUBLIC_KEY_SIZE and public_key_bytes[0] == SEC1_UNCOMPRESSED_TAG:
        point = public_key_bytes
        form = "SEC1"
    elif size == RAW_PUBLIC_KEY_SIZE:
        point = bytes([SEC1_UNCOMPRESSED_TAG]) + public_key_bytes
        form = "raw"
    else:
        raise InvalidKeyError(
            f"Unexpected public key length: {size} bytes (expected 64 or 65)"
        )

    try:
        return ec.EllipticCurvePublicKey.from_encoded_point(CURVE, point)
    except ValueError as err:
        raise InvalidKeyError(f"Invalid public key ({form}): {err}") from err


def get_public_key_bytes(public_key: ec.EllipticCurvePublicKey) -> bytes:
    """Get the 65-byte uncompressed point of a public key."""
    return public_key.public_bytes(
        encoding=Encoding.X962, format=PublicFormat.UncompressedPoint
    )


def _check_scalar(value: int, name: str) -> None:
    if not 0 < value < CURVE_ORDER:
        raise InvalidInputError(f"Signature {name} is out of range for P-256")


def parse_signature(signature: bytes) -> tuple[int, int]:
    """Parse an ECDSA signature into its (r, s) integers.

    A signature longer than 64 bytes starting with the SEQUENCE tag is read
    as DER; exactly 64 bytes is read as raw r || s.

    Args:
        signature: DER or raw signature bytes.

    Returns:
        The (r, s) pair.
    """
    size = len(signature)
    if size > RAW_SIGNATURE_SIZE and signature[0] == DER_SEQUENCE_TAG:
        try:
            r, s = decode_dss_signature(signature)
        except ValueError as err:
            raise InvalidInputError(f"Invalid DER signature format: {err}") from err
    elif size == RAW_SIGNATURE_SIZE:
        r = int.from_bytes(signature[:SCALAR_SIZE], "big")
        s = int.from_bytes(signature[SCALAR_SIZE:], "big")
    else:
        raise InvalidInputError(
            f"Invalid signature length: {size} bytes "
            "(expected 64 for raw or >64 for DER)"
        )

    _check_scalar(r, "r")
    _check_scalar(s, "s")
    return r, s


def signature_to_der(signature: bytes) -> bytes:
    """Re-encode a DER or raw signature as canonical DER."""
    r, s = parse_signature(signature)
    return encode_dss_signature(r, s)


def signature_to_raw(signature: bytes) -> bytes:
    """Re-encode a DER or raw signature as 64-byte r || s."""
    r, s = parse_signature(signature)
    return r.to_bytes(SCALAR_SIZE, "big") + s.to_bytes(SCALAR_SIZE, "big")


def verify_prehashed(
    public_key: ec.EllipticCurvePublicKey, digest: bytes, signature: bytes
) -> bool:
    """Verify an ECDSA signature over an already computed SHA-256 digest.

    Malformed signatures raise ``InvalidInputError``; a well-formed signature
    that does not match returns False.

    Args:
        public_key: The signer's public key.
        digest: The 32-byte message digest (not hashed again).
        signature: DER or raw signature bytes.

    Returns:
        True if valid, False otherwise.
    """
    if len(digest) != DIGEST_SIZE:
        raise InvalidInputError(f"Digest must be {DIGEST_SIZE} bytes, got {len(digest)}")

    der_signature = signature_to_der(signature)
    try:
        public_key.verify(
            der_signature, digest, ec.ECDSA(Prehashed(hashes.SHA256()))
        )
        return True
    except InvalidSignature:
        _LOGGER.debug("Signature does not match digest %s", digest.hex())
        return False
    except Exception as err:  # pylint: disable=broad-except
        _LOGGER.debug("Verifier rejected signature: %s", err)
        return False
