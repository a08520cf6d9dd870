"""Custom exception types for Gree protocol errors.

Inbound problems raise instead of returning None; the session catches them at
the datagram boundary, logs and drops the datagram.
"""

from __future__ import annotations

# Bytes of offending input kept on the exception (avoids leaking ciphertext into logs)
DATA_PREVIEW_LENGTH = 16


class GreeProtocolError(Exception):
    """Base exception for all Gree protocol errors."""


class DecodeError(GreeProtocolError):
    """Datagram cannot be decoded.

    Raised when the outer JSON is malformed, the envelope is missing fields,
    decryption fails (tag mismatch under version 2, bad padding under
    version 1) or the plaintext is not a JSON object.

    Attributes:
        reason: Specific failure reason (e.g., "invalid_json", "auth_failed")
        data_preview: First 16 bytes of the offending data

    """

    def __init__(self, reason: str, data: bytes | str = b"") -> None:
        """Initialize decode error with reason and a short data preview."""
        if isinstance(data, str):
            data = data.encode("utf-8", errors="replace")
        self.reason: str = reason
        self.data_preview: bytes = data[:DATA_PREVIEW_LENGTH] if data else b""
        super().__init__(f"Datagram decode failed: {reason}")


class UnexpectedPayloadError(GreeProtocolError):
    """Well-formed payload that is out of sequence for the session state.

    Examples: ``dat`` before the device is bound, ``bindok`` before a ``dev``
    reply set the device id, or a kind the session does not know.

    Attributes:
        kind: Payload ``t`` field
        state: Session state when the payload arrived

    """

    def __init__(self, kind: str, state: str) -> None:
        """Initialize unexpected payload error."""
        self.kind: str = kind
        self.state: str = state
        super().__init__(f"Unexpected payload '{kind}' (state: {state})")
