"""Guarded deletion of HSM objects."""

from __future__ import annotations

import logging

from .errors import DeletionFailedError, DeviceError, InvalidInputError
from .hsm_interface import HsmConnection
from .models import ObjectType

_LOGGER = logging.getLogger(__name__)


def delete_object(
    connection: HsmConnection, object_id: int, object_type: ObjectType
) -> None:
    """Delete an object from the HSM by id and type.

    Authentication keys are refused before the device is contacted.

    Args:
        connection: The active session connection.
        object_id: The 16-bit object id.
        object_type: The object type.
    """
    try:
        object_type = ObjectType(object_type)
    except ValueError as err:
        raise InvalidInputError(f"Unknown object type: {object_type!r}") from err

    if object_type == ObjectType.AUTHENTICATION_KEY:
        _LOGGER.warning(
            "Refusing to delete authentication key 0x%04x", object_id
        )
        raise InvalidInputError("Deleting authentication keys is not allowed")

    with connection.acquire(DeletionFailedError) as device:
        try:
            device.delete_object(object_id, object_type)
        except DeviceError as err:
            _LOGGER.error(
                "Deleting %s 0x%04x failed: %s", object_type.name, object_id, err
            )
            raise DeletionFailedError(f"Failed to delete object: {err}") from err

    _LOGGER.info("Deleted %s 0x%04x", object_type.name, object_id)
