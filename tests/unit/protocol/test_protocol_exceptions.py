"""Unit tests for protocol exceptions."""

from __future__ import annotations

from gree_lan.protocol import DecodeError, GreeProtocolError, UnexpectedPayloadError
from gree_lan.structs import SessionState


class TestExceptionHierarchy:
    """Tests for exception inheritance."""

    def test_all_exceptions_inherit_from_gree_protocol_error(self):
        """Test that protocol exceptions share one base."""
        assert issubclass(DecodeError, GreeProtocolError)
        assert issubclass(UnexpectedPayloadError, GreeProtocolError)


class TestDecodeError:
    """Tests for DecodeError."""

    def test_decode_error_with_reason(self):
        """Test DecodeError with reason only."""
        error = DecodeError("invalid_json")
        assert error.reason == "invalid_json"
        assert error.data_preview == b""
        assert "invalid_json" in str(error)

    def test_decode_error_truncates_preview(self):
        """Test only the first 16 bytes of data are kept."""
        error = DecodeError("auth_failed", b"\x01" * 64)
        assert error.data_preview == b"\x01" * 16

    def test_decode_error_accepts_text(self):
        """Test text data is encoded for the preview."""
        error = DecodeError("invalid_base64", "not base64")
        assert error.data_preview == b"not base64"


class TestUnexpectedPayloadError:
    """Tests for UnexpectedPayloadError."""

    def test_unexpected_payload_error(self):
        """Test kind and state are carried and rendered."""
        error = UnexpectedPayloadError("dat", SessionState.AWAITING_HANDSHAKE)
        assert error.kind == "dat"
        assert error.state == "awaiting_handshake"
        assert "dat" in str(error)
        assert "awaiting_handshake" in str(error)
