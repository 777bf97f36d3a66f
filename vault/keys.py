"""
keys.py - Validator public keys

A validator is named by the hex encoding of a one-byte algorithm tag followed
by the raw key: tag 01 is an Ed25519 key of 32 bytes, tag 02 a secp256k1 key
of 33 bytes.
"""

from __future__ import annotations
from dataclasses import dataclass

from .core import InvalidValidatorKey


ALGORITHM_ED25519 = "ED25519"
ALGORITHM_SECP256K1 = "SECP256K1"

KEY_TAGS = {
    0x01: (ALGORITHM_ED25519, 32),
    0x02: (ALGORITHM_SECP256K1, 33),
}


@dataclass(frozen=True, slots=True)
class ValidatorKey:
    algorithm: str
    key_bytes: bytes

    @property
    def tag(self) -> int:
        for tag, (algorithm, _) in KEY_TAGS.items():
            if algorithm == self.algorithm:
                return tag
        raise InvalidValidatorKey(f"unknown algorithm {self.algorithm}")

    def to_hex(self) -> str:
        return f"{self.tag:02x}{self.key_bytes.hex()}"


def parse_validator_key(text: str) -> ValidatorKey:
    """
    Decode a tagged hex validator key.

    Raises:
        InvalidValidatorKey: on non-hex input, an unknown tag, or a key
            length that does not match the tag
    """
    try:
        raw = bytes.fromhex(text.strip())
    except (ValueError, AttributeError) as e:
        raise InvalidValidatorKey(f"validator key is not hex: {text!r}") from e
    if not raw:
        raise InvalidValidatorKey("validator key is empty")

    tag, key_bytes = raw[0], raw[1:]
    if tag not in KEY_TAGS:
        raise InvalidValidatorKey(f"unknown key tag {tag:#04x}")
    algorithm, length = KEY_TAGS[tag]
    if len(key_bytes) != length:
        raise InvalidValidatorKey(
            f"{algorithm} key must be {length} bytes, got {len(key_bytes)}"
        )
    return ValidatorKey(algorithm, key_bytes)
