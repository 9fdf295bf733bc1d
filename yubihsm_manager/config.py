"""Connection configuration for the YubiHSM manager."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError

from .const import (
    DEFAULT_AUTH_KEY_ID,
    DEFAULT_AUTH_PASSWORD,
    DEFAULT_CONNECTOR_URL,
    DEFAULT_SIGNING_KEY_ID,
    ENV_AUTH_KEY_ID,
    ENV_CONNECTOR_URL,
    ENV_PASSWORD,
    ENV_SIGNING_KEY_ID,
    MAX_OBJECT_ID,
)
from .core.errors import ConfigError


class HsmConfig(BaseModel):
    """Settings used to open an authenticated session."""

    model_config = ConfigDict(frozen=True)

    auth_key_id: int = Field(default=DEFAULT_AUTH_KEY_ID, ge=1, le=MAX_OBJECT_ID)
    password: SecretStr = SecretStr(DEFAULT_AUTH_PASSWORD)
    signing_key_id: int = Field(default=DEFAULT_SIGNING_KEY_ID, ge=1, le=MAX_OBJECT_ID)
    connector_url: str = Field(default=DEFAULT_CONNECTOR_URL, min_length=1)

    def with_password(self, password: str) -> HsmConfig:
        """Return a copy of this configuration with another password."""
        return self.model_copy(update={"password": SecretStr(password)})

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> HsmConfig:
        """Build a configuration from ``YUBIHSM_*`` environment variables.

        Unset variables keep their defaults. Object ids may be written in
        decimal or with a ``0x`` prefix.

        Args:
            environ: Mapping to read from, defaults to ``os.environ``.

        Returns:
            The validated configuration.

        Raises:
            ConfigError: If a variable holds an invalid value.
        """
        if environ is None:
            environ = os.environ

        values: dict[str, object] = {}
        for env_name, field in (
            (ENV_AUTH_KEY_ID, "auth_key_id"),
            (ENV_SIGNING_KEY_ID, "signing_key_id"),
        ):
            raw = environ.get(env_name)
            if raw is None or not raw.strip():
                continue
            try:
                values[field] = int(raw.strip(), 0)
            except ValueError as err:
                raise ConfigError(f"{env_name} is not a valid object id: {raw!r}") from err

        password = environ.get(ENV_PASSWORD)
        if password is not None:
            values["password"] = password

        connector_url = environ.get(ENV_CONNECTOR_URL)
        if connector_url:
            values["connector_url"] = connector_url.strip()

        try:
            return cls(**values)
        except ValidationError as err:
            raise ConfigError(f"Configuration validation failed: {err}") from err
