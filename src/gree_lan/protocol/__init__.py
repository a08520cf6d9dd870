"""Gree protocol package - envelope codec, payload variants and encryption.

Public API:
- Envelope codec (PacketCodec, Envelope, SequenceKind)
- Encryption (EncryptionVersion, GreeCipher, CryptoProvider)
- Payload variants and outbound builders
"""

from gree_lan.protocol.codec import Envelope, PacketCodec, SequenceKind
from gree_lan.protocol.crypto import CryptoProvider, EncryptionVersion, GreeCipher
from gree_lan.protocol.exceptions import DecodeError, GreeProtocolError, UnexpectedPayloadError
from gree_lan.protocol.payloads import (
    BindOkPayload,
    DatPayload,
    DevPayload,
    InboundPayload,
    ResPayload,
    UnknownPayload,
    bind_payload,
    command_payload,
    parse_payload,
    status_payload,
)

__all__ = [
    # Codec
    "Envelope",
    "PacketCodec",
    "SequenceKind",
    # Encryption
    "CryptoProvider",
    "EncryptionVersion",
    "GreeCipher",
    # Errors
    "DecodeError",
    "GreeProtocolError",
    "UnexpectedPayloadError",
    # Payloads
    "BindOkPayload",
    "DatPayload",
    "DevPayload",
    "InboundPayload",
    "ResPayload",
    "UnknownPayload",
    "bind_payload",
    "command_payload",
    "parse_payload",
    "status_payload",
]
