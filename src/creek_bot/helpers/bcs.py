"""
BCS helpers on top of ``aptos_sdk.bcs.Serializer``.

Sui and Aptos share the BCS wire format; the Sui-specific parts are the
32-byte address encoding and the range checks on u64 values coming from
user input.
"""

from __future__ import annotations

from aptos_sdk.bcs import Serializer
from eth_utils import decode_hex, remove_0x_prefix

ADDRESS_LENGTH = 32
U64_MAX = (1 << 64) - 1


def address_bytes(address: str) -> bytes:
    """0x-hex Sui address (short forms allowed) -> 32 raw bytes."""
    body = remove_0x_prefix(address.strip().lower())
    if len(body) > ADDRESS_LENGTH * 2:
        raise ValueError(f"Address too long: {address}")
    return decode_hex(body.rjust(ADDRESS_LENGTH * 2, "0"))


def serialize_address(serializer: Serializer, address: str) -> None:
    serializer.fixed_bytes(address_bytes(address))


def encode_u64(value: int) -> bytes:
    value = int(value)
    if not 0 <= value <= U64_MAX:
        raise ValueError(f"u64 out of range: {value}")
    s = Serializer()
    s.u64(value)
    return s.output()
