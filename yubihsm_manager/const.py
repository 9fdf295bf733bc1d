"""Constants for the YubiHSM manager."""

from typing import Final

DEFAULT_AUTH_KEY_ID: Final = 1
DEFAULT_AUTH_PASSWORD: Final = "password"

# secp256r1/ECDSA key stored in the YubiHSM 2
DEFAULT_SIGNING_KEY_ID: Final = 0xF35B

# pyusb transport; an HTTP connector URL such as http://127.0.0.1:12345 also works
DEFAULT_CONNECTOR_URL: Final = "yhusb://"

MAX_OBJECT_ID: Final = 0xFFFF

ENV_AUTH_KEY_ID: Final = "YUBIHSM_AUTH_KEY_ID"
ENV_PASSWORD: Final = "YUBIHSM_PASSWORD"
ENV_SIGNING_KEY_ID: Final = "YUBIHSM_SIGNING_KEY_ID"
ENV_CONNECTOR_URL: Final = "YUBIHSM_CONNECTOR_URL"
