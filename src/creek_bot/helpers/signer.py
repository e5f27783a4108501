"""
Ed25519 signing identity for Sui transactions.

Only turns a raw 32-byte seed into a signer; key storage and the other Sui
key schemes are handled outside the bot.
"""

from __future__ import annotations

import base64
import binascii
import hashlib

from eth_utils import decode_hex, is_hex
from nacl.signing import SigningKey

from creek_bot.errors import ConfigurationError

ED25519_FLAG = 0x00
# TransactionData intent: scope=0, version=0, app_id=0 (Sui)
TRANSACTION_INTENT = bytes([0, 0, 0])


def blake2b_256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


def _decode_seed(raw: str) -> bytes:
    raw = raw.strip()
    if not raw:
        raise ConfigurationError("SUI_PRIVATE_KEY / PRIVATE_KEY is empty")
    if raw.startswith("suiprivkey"):
        raise ConfigurationError("Bech32 'suiprivkey' keys are not supported; export the key as hex or base64")
    if raw.startswith("0x") and is_hex(raw):
        seed = decode_hex(raw)
    else:
        try:
            seed = base64.b64decode(raw, validate=True)
        except (binascii.Error, ValueError):
            raise ConfigurationError("Private key must be 0x-hex or base64") from None
    if len(seed) == 33:
        # leading scheme flag byte
        if seed[0] != ED25519_FLAG:
            raise ConfigurationError(f"Unsupported key scheme flag: {seed[0]}")
        seed = seed[1:]
    if len(seed) != 32:
        raise ConfigurationError(f"Seed must be 32 bytes, got {len(seed)} bytes")
    return seed


class Ed25519Signer:
    def __init__(self, seed: bytes):
        self._key = SigningKey(seed)
        self.public_key = bytes(self._key.verify_key)

    @classmethod
    def from_private_key(cls, raw: str) -> "Ed25519Signer":
        return cls(_decode_seed(raw))

    @property
    def address(self) -> str:
        return "0x" + blake2b_256(bytes([ED25519_FLAG]) + self.public_key).hex()

    def sign_transaction(self, tx_bytes: bytes) -> str:
        """Serialized signature (flag || sig || pubkey) as base64."""
        digest = blake2b_256(TRANSACTION_INTENT + tx_bytes)
        signature = self._key.sign(digest).signature
        return base64.b64encode(bytes([ED25519_FLAG]) + signature + self.public_key).decode()
