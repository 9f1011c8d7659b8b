"""Validación de direcciones Dash (base58check).

English:
    Dash address validation: base58check decode, 20-byte payload and a
    version byte that belongs to the configured network.
"""

from __future__ import annotations

from typing import Dict, Tuple

import base58

from .errors import ErrorCode, VoteError

# P2PKH and P2SH version bytes per network.
NETWORK_VERSIONS: Dict[str, Tuple[int, int]] = {
    "mainnet": (0x4C, 0x10),
    "testnet": (0x8C, 0x13),
}

PAYLOAD_LENGTH = 20


def decode_address(address: str) -> Tuple[int, bytes]:
    """Decodifica la dirección en (versión, payload).

    English: Decode an address into ``(version, payload)``. Raises
    ``ValueError`` on bad characters or checksum.
    """
    raw = base58.b58decode_check(address)
    if not raw:
        raise ValueError("empty address payload")
    return raw[0], raw[1:]


def encode_address(version: int, payload: bytes) -> str:
    return base58.b58encode_check(bytes([version]) + payload).decode("ascii")


def is_valid_address(address: str, network: str) -> bool:
    versions = NETWORK_VERSIONS.get(network)
    if versions is None:
        # Only mainnet and testnet are supported.
        return False
    try:
        version, payload = decode_address(address)
    except ValueError:
        return False
    return version in versions and len(payload) == PAYLOAD_LENGTH


def validate_address(address: str, network: str) -> None:
    if not is_valid_address(address, network):
        raise VoteError(ErrorCode.INVALID_NETWORK)
