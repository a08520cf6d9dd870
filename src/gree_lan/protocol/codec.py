"""Gree envelope encoder/decoder.

The envelope is the outer JSON object exchanged on the wire::

    {"tcid": "<device id>", "cid": "app", "i": 0|1, "t": "pack", "uid": 0,
     "tag": "<gcm tag, v2 only>", "pack": "<base64 ciphertext>"}

The codec holds no session state: the negotiated version and key are passed
into every call.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from gree_lan.logging_abstraction import get_logger
from gree_lan.protocol.crypto import CryptoProvider, EncryptionVersion, GreeCipher
from gree_lan.protocol.exceptions import DecodeError
from gree_lan.protocol.payloads import InboundPayload, parse_payload, scan_payload

__all__ = [
    "APP_CID",
    "ENVELOPE_TYPE_PACK",
    "Envelope",
    "PacketCodec",
    "SequenceKind",
]

APP_CID = "app"
ENVELOPE_TYPE_PACK = "pack"

logger = get_logger(__name__)


class SequenceKind(IntEnum):
    """Value of the envelope ``i`` field."""

    STEADY = 0
    HANDSHAKE = 1


@dataclass(frozen=True, slots=True)
class Envelope:
    """Outer wire structure around an encrypted payload.

    For inbound envelopes ``cid`` is the sender (the device id) and ``tcid``
    is usually empty.
    """

    tcid: str
    pack: str
    i: int = SequenceKind.STEADY
    cid: str = APP_CID
    t: str = ENVELOPE_TYPE_PACK
    uid: int = 0
    tag: str | None = None

    @property
    def version(self) -> EncryptionVersion:
        """Version inferred from this message alone (a tag means v2)."""
        return EncryptionVersion.V2 if self.tag is not None else EncryptionVersion.V1

    @property
    def is_handshake(self) -> bool:
        """True for ``i=1`` packets, which use the generic key."""
        return self.i == SequenceKind.HANDSHAKE

    def to_dict(self) -> dict[str, Any]:
        """Wire dict; ``tag`` is present only when set."""
        data: dict[str, Any] = {
            "tcid": self.tcid,
            "cid": self.cid,
            "i": int(self.i),
            "t": self.t,
            "uid": self.uid,
        }
        if self.tag is not None:
            data["tag"] = self.tag
        data["pack"] = self.pack
        return data

    def to_bytes(self) -> bytes:
        """Serialize for the socket."""
        return json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Envelope:
        """Build an envelope from a parsed wire dict.

        Raises:
            DecodeError: If ``pack`` is missing or fields have the wrong type

        """
        pack = data.get("pack")
        if not isinstance(pack, str):
            raise DecodeError("missing_pack", repr(dict(data)))
        tag = data.get("tag")
        if tag is not None and not isinstance(tag, str):
            raise DecodeError("invalid_tag_field", repr(dict(data)))
        try:
            sequence = int(data.get("i", SequenceKind.STEADY))
            uid = int(data.get("uid", 0))
        except (TypeError, ValueError) as e:
            raise DecodeError("invalid_envelope_field", repr(dict(data))) from e
        return cls(
            tcid=str(data.get("tcid") or ""),
            pack=pack,
            i=sequence,
            cid=str(data.get("cid") or ""),
            t=str(data.get("t") or ""),
            uid=uid,
            tag=tag,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> Envelope:
        """Parse a raw datagram.

        Raises:
            DecodeError: On invalid JSON or a non-envelope object

        """
        try:
            decoded = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodeError("invalid_json", data) from e
        if not isinstance(decoded, dict):
            raise DecodeError("envelope_not_object", data)
        return cls.from_dict(decoded)


class PacketCodec:
    """Wraps payloads into envelopes and unwraps them again.

    Args:
        crypto: Encryption provider (defaults to :class:`GreeCipher`)

    """

    def __init__(self, crypto: CryptoProvider | None = None) -> None:
        self.crypto: CryptoProvider = crypto if crypto is not None else GreeCipher()

    @staticmethod
    def encode_scan() -> bytes:
        """Discovery broadcast; bare JSON, no envelope or encryption."""
        return json.dumps(scan_payload(), separators=(",", ":")).encode("utf-8")

    def encode(
        self,
        payload: Mapping[str, Any],
        *,
        target_id: str,
        key: str | None,
        sequence: SequenceKind,
        version: EncryptionVersion,
    ) -> Envelope:
        """Encrypt ``payload`` and wrap it for ``target_id``.

        Handshake packets ignore ``key`` and use the generic key. Under
        version 2 the GCM tag is carried in the envelope; under version 1
        there is no ``tag`` field at all.
        """
        effective_key = None if sequence == SequenceKind.HANDSHAKE else key
        tag: str | None = None
        if version == EncryptionVersion.V2:
            pack, tag = self.crypto.encrypt_v2(payload, effective_key)
        else:
            pack = self.crypto.encrypt_v1(payload, effective_key)

        logger.debug(
            "Encoded '%s' for %s (v%d, i=%d)",
            payload.get("t"),
            target_id,
            int(version),
            int(sequence),
            extra={"target_id": target_id, "version": int(version), "i": int(sequence)},
        )
        return Envelope(tcid=target_id, pack=pack, i=sequence, tag=tag)

    def decode(
        self,
        envelope: Envelope,
        *,
        key: str | None,
        version: EncryptionVersion,
    ) -> dict[str, Any]:
        """Decrypt the ``pack`` of ``envelope`` with the negotiated version.

        ``key`` is used unless the envelope is a handshake (``i=1``) packet.

        Raises:
            DecodeError: On decrypt failure or a v2 envelope without a tag

        """
        effective_key = None if envelope.is_handshake else key
        if version == EncryptionVersion.V2:
            if envelope.tag is None:
                raise DecodeError("missing_tag", envelope.pack)
            return self.crypto.decrypt_v2(envelope.pack, envelope.tag, effective_key)
        return self.crypto.decrypt_v1(envelope.pack, effective_key)

    def decode_datagram(
        self,
        data: bytes,
        *,
        key: str | None,
        version: EncryptionVersion,
    ) -> tuple[Envelope, InboundPayload]:
        """Parse, decrypt and type a raw inbound datagram.

        Raises:
            DecodeError: For any failure along the way

        """
        envelope = Envelope.from_bytes(data)
        if envelope.version != version:
            logger.debug(
                "Envelope looks like v%d but session is on v%d",
                int(envelope.version),
                int(version),
                extra={"cid": envelope.cid},
            )
        return envelope, parse_payload(self.decode(envelope, key=key, version=version))
