"""Firmas de mensajes Dash (formato compacto recuperable).

English:
    Dash signed-message verification. A signature is the base64 encoding of
    a 65-byte compact secp256k1 signature ``header || r || s``; the public key
    is recovered from the double-SHA256 of the magic-prefixed message and its
    HASH160 must match the address payload.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
from typing import Tuple

from Crypto.Hash import RIPEMD160
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError

from .addresses import NETWORK_VERSIONS, decode_address, encode_address
from .errors import SignatureError

MESSAGE_MAGIC = b"DarkCoin Signed Message:\n"
COMPACT_SIGNATURE_LENGTH = 65
_HEADER_BASE = 27


def _varint(value: int) -> bytes:
    if value < 0xFD:
        return bytes([value])
    if value <= 0xFFFF:
        return b"\xfd" + value.to_bytes(2, "little")
    if value <= 0xFFFFFFFF:
        return b"\xfe" + value.to_bytes(4, "little")
    return b"\xff" + value.to_bytes(8, "little")


def _varstr(data: bytes) -> bytes:
    return _varint(len(data)) + data


def message_digest(message: bytes) -> bytes:
    """Hash doble SHA256 del mensaje con prefijo mágico."""
    prefixed = _varstr(MESSAGE_MAGIC) + _varstr(message)
    return hashlib.sha256(hashlib.sha256(prefixed).digest()).digest()


def hash160(data: bytes) -> bytes:
    return RIPEMD160.new(hashlib.sha256(data).digest()).digest()


def _serialize_public_key(public_key: keys.PublicKey, compressed: bool) -> bytes:
    if compressed:
        return public_key.to_compressed_bytes()
    return b"\x04" + public_key.to_bytes()


def _split_signature(signature: str) -> Tuple[int, bool, int, int]:
    try:
        raw = base64.b64decode(signature, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise SignatureError("signature is not valid base64") from exc
    if len(raw) != COMPACT_SIGNATURE_LENGTH:
        raise SignatureError(f"signature must be {COMPACT_SIGNATURE_LENGTH} bytes, got {len(raw)}")
    header = raw[0] - _HEADER_BASE
    if header < 0 or header > 7:
        raise SignatureError(f"invalid signature header byte {raw[0]}")
    recovery_id = header & 3
    compressed = bool(header & 4)
    r = int.from_bytes(raw[1:33], "big")
    s = int.from_bytes(raw[33:], "big")
    return recovery_id, compressed, r, s


def recover_pubkey_hash(message: str, signature: str) -> bytes:
    """Recupera el HASH160 de la clave pública firmante.

    English: Recover the HASH160 of the signing public key.
    """
    recovery_id, compressed, r, s = _split_signature(signature)
    if recovery_id > 1:
        raise SignatureError(f"unsupported recovery id {recovery_id}")
    try:
        digest = message_digest(message.encode("utf-8"))
    except UnicodeEncodeError as exc:
        raise SignatureError("message is not encodable as UTF-8") from exc
    try:
        public_key = keys.Signature(vrs=(recovery_id, r, s)).recover_public_key_from_msg_hash(digest)
    except (BadSignature, ValidationError, ValueError) as exc:
        raise SignatureError(f"public key recovery failed: {exc}") from exc
    return hash160(_serialize_public_key(public_key, compressed))


def verify_message(address: str, message: str, signature: str) -> None:
    """Verifica que ``signature`` firme ``message`` con la clave de ``address``.

    English: Raise ``SignatureError`` unless ``signature`` is a valid signed
    message for ``address``.
    """
    try:
        _version, payload = decode_address(address)
    except ValueError as exc:
        raise SignatureError("address could not be decoded") from exc
    if recover_pubkey_hash(message, signature) != payload:
        raise SignatureError("signature does not match address")


# ---------------------------------------------------------------------------
# Signing helpers (Ayudantes de firma)
# ---------------------------------------------------------------------------


def address_from_private_key(private_key: bytes, network: str = "mainnet", *, compressed: bool = True) -> str:
    """Dirección P2PKH para una clave privada / P2PKH address for a key."""
    public_key = keys.PrivateKey(private_key).public_key
    p2pkh_version = NETWORK_VERSIONS[network][0]
    return encode_address(p2pkh_version, hash160(_serialize_public_key(public_key, compressed)))


def sign_message(private_key: bytes, message: str, *, compressed: bool = True) -> str:
    """Firma ``message`` en el formato compacto Dash (base64)."""
    signed = keys.PrivateKey(private_key).sign_msg_hash(message_digest(message.encode("utf-8")))
    header = _HEADER_BASE + signed.v + (4 if compressed else 0)
    raw = bytes([header]) + signed.r.to_bytes(32, "big") + signed.s.to_bytes(32, "big")
    return base64.b64encode(raw).decode("ascii")
