"""Enumeration and description of the objects stored on the HSM."""

from __future__ import annotations

import logging

from .errors import DeviceError, GetPublicKeyFailedError, ListingFailedError
from .hsm_interface import HsmConnection
from .models import ObjectInfo, ObjectSummary, ObjectType

_LOGGER = logging.getLogger(__name__)

HEX_LINE_WIDTH = 64


def get_object_info(
    connection: HsmConnection, object_id: int, object_type: ObjectType
) -> ObjectInfo:
    """Get detailed information about an object.

    Args:
        connection: The active session connection.
        object_id: The 16-bit object id.
        object_type: The object type.

    Returns:
        The object metadata.
    """
    with connection.acquire(ListingFailedError) as device:
        try:
            return device.get_object_info(object_id, object_type)
        except DeviceError as err:
            raise ListingFailedError(f"Failed to get object info: {err}") from err


def get_public_key(connection: HsmConnection, key_id: int) -> bytes:
    """Get the raw public key bytes of an asymmetric key.

    Args:
        connection: The active session connection.
        key_id: Object id of the asymmetric key.

    Returns:
        The device-native public key bytes.
    """
    with connection.acquire(ListingFailedError) as device:
        try:
            return device.get_public_key(key_id)
        except DeviceError as err:
            raise GetPublicKeyFailedError(str(err)) from err


def list_summaries(connection: HsmConnection) -> list[ObjectSummary]:
    """List every visible object with its metadata.

    Asymmetric keys also carry their hex-encoded public key. Objects keep the
    order reported by the device. Any failing lookup aborts the whole
    listing; partial results are never returned.

    Args:
        connection: The active session connection.

    Returns:
        One summary per object.
    """
    with connection.acquire(ListingFailedError) as device:
        try:
            descriptors = device.list_objects()
        except DeviceError as err:
            _LOGGER.error("Listing objects failed: %s", err)
            raise ListingFailedError(str(err)) from err

    _LOGGER.debug("Device reported %d objects", len(descriptors))

    summaries: list[ObjectSummary] = []
    for descriptor in descriptors:
        try:
            info = get_object_info(
                connection, descriptor.object_id, descriptor.object_type
            )
            public_key_hex = None
            if info.object_type == ObjectType.ASYMMETRIC_KEY:
                public_key_hex = get_public_key(connection, info.object_id).hex()
        except GetPublicKeyFailedError as err:
            raise ListingFailedError(
                f"Object 0x{descriptor.object_id:04x}: {err}"
            ) from err

        summaries.append(ObjectSummary.from_info(info, public_key_hex))

    return summaries


def _wrap_hex(value: str, indent: str) -> str:
    lines = [
        value[start : start + HEX_LINE_WIDTH]
        for start in range(0, len(value), HEX_LINE_WIDTH)
    ]
    return f"\n{indent}".join(lines)


def format_summaries(summaries: list[ObjectSummary]) -> str:
    """Render summaries as human-readable text."""
    if not summaries:
        return "No objects visible for the current authentication key."

    lines = ["Objects on YubiHSM2 (visible to current auth key):"]
    for summary in summaries:
        lines.append(
            f"- id 0x{summary.object_id:04x} ({summary.object_type.name}), "
            f"algorithm: {summary.algorithm}, label: {summary.label!r}, "
            f"sequence: {summary.sequence}"
        )
        if summary.public_key_hex:
            lines.append("  Public Key:")
            lines.append(f"    Algorithm: {summary.algorithm}")
            lines.append(f"    Bytes ({summary.public_key_size} bytes, hex):")
            lines.append("    " + _wrap_hex(summary.public_key_hex, "    "))

    return "\n".join(lines) + "\n"
