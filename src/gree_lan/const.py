import os

from gree_lan import __version__

__all__ = [
    "GCM_AAD",
    "GCM_NONCE",
    "GENERIC_KEY_V1",
    "GENERIC_KEY_V2",
    "GREE_DEBUG",
    "GREE_DEVICE_PORT",
    "GREE_ENABLE_METRICS",
    "GREE_HOST",
    "GREE_LOCAL_PORT",
    "GREE_LOG_FORMAT",
    "GREE_LOG_HUMAN_OUTPUT",
    "GREE_LOG_JSON_FILE",
    "GREE_METRICS_PORT",
    "GREE_POLL_INTERVAL",
    "GREE_RECONNECT_DELAY",
    "GREE_VERSION",
    "V2_VERSION_PREFIX",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")

GREE_VERSION: str = __version__


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# Session defaults
GREE_HOST: str = os.environ.get("GREE_HOST", "192.168.1.255")
GREE_LOCAL_PORT: int = _env_int("GREE_LOCAL_PORT", 0)
GREE_DEVICE_PORT: int = _env_int("GREE_DEVICE_PORT", 7000)
GREE_RECONNECT_DELAY: float = _env_float("GREE_RECONNECT_DELAY", 60.0)
GREE_POLL_INTERVAL: float = _env_float("GREE_POLL_INTERVAL", 3.0)

GREE_DEBUG = os.environ.get("GREE_DEBUG", "0").casefold() in YES_ANSWER

# Logging Configuration
GREE_LOG_FORMAT: str = os.environ.get("GREE_LOG_FORMAT", "human")  # "json", "human", or "both"
GREE_LOG_JSON_FILE: str | None = os.environ.get("GREE_LOG_JSON_FILE") or None
GREE_LOG_HUMAN_OUTPUT: str = os.environ.get("GREE_LOG_HUMAN_OUTPUT", "stdout")  # "stdout", "stderr", or file path

# Metrics
GREE_ENABLE_METRICS: bool = os.environ.get("GREE_ENABLE_METRICS", "0").casefold() in YES_ANSWER
GREE_METRICS_PORT: int = _env_int("GREE_METRICS_PORT", 9400)

# Well-known keys used before the device hands out a session key
GENERIC_KEY_V1: str = "a3K8Bx%2r8Y7#xDh"
GENERIC_KEY_V2: str = "{yxAHAY_Lm6pbC/<"
GCM_NONCE: bytes = bytes([0x54, 0x40, 0x78, 0x44, 0x49, 0x67, 0x5A, 0x51, 0x6C, 0x5E, 0x63, 0x13])
GCM_AAD: bytes = b"qualcomm-test"

# firmware that answers scan with v1 but insists on v2 for everything after
V2_VERSION_PREFIX: str = "V2."
