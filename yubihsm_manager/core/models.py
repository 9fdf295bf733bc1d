"""
Core models for the YubiHSM manager.
"""

from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field

from ..const import MAX_OBJECT_ID


class ObjectType(IntEnum):
    """Object types stored on a YubiHSM 2 (values match the device encoding)."""

    OPAQUE = 0x01
    AUTHENTICATION_KEY = 0x02
    ASYMMETRIC_KEY = 0x03
    WRAP_KEY = 0x04
    HMAC_KEY = 0x05
    TEMPLATE = 0x06
    OTP_AEAD_KEY = 0x07
    SYMMETRIC_KEY = 0x08
    PUBLIC_WRAP_KEY = 0x09


class ObjectDescriptor(BaseModel):
    """Identifies one object on the device, as returned by a listing."""

    model_config = ConfigDict(frozen=True)

    object_id: int = Field(ge=0, le=MAX_OBJECT_ID)
    object_type: ObjectType


class ObjectInfo(ObjectDescriptor):
    """Detailed metadata for one object."""

    algorithm: str
    label: str
    sequence: int = Field(ge=0)


class ObjectSummary(ObjectInfo):
    """Object metadata enriched for display.

    ``public_key_hex`` is lowercase hex without separators and is only set
    for asymmetric keys.
    """

    public_key_hex: str | None = None

    @classmethod
    def from_info(cls, info: ObjectInfo, public_key_hex: str | None = None) -> ObjectSummary:
        return cls(**info.model_dump(), public_key_hex=public_key_hex)

    @property
    def is_deletable(self) -> bool:
        """Authentication keys can never be deleted through this library."""
        return self.object_type != ObjectType.AUTHENTICATION_KEY

    @property
    def public_key_size(self) -> int:
        return len(self.public_key_hex) // 2 if self.public_key_hex else 0

    def display_row(self) -> dict[str, str]:
        """Return the fields of a table row for this object."""
        return {
            "id": f"0x{self.object_id:04x}",
            "type": self.object_type.name,
            "algorithm": self.algorithm,
            "label": self.label,
            "sequence": str(self.sequence),
            "public_key": self.public_key_hex or "",
        }
