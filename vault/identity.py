"""
identity.py - Canonical caller identities

The same contract can reach a collaborator under several textual encodings:
a direct contract hash, the package hash it was installed under, or an
entity-prefixed rendering of either. Authorization checks must treat those
as one entity, so every identity is reduced once to a canonical form and
compared only through same_entity().
"""

from __future__ import annotations
from dataclasses import dataclass
import re
from typing import Union


IDENTITY_KIND_CONTRACT = "contract"
IDENTITY_KIND_ACCOUNT = "account"
IDENTITY_KIND_NAME = "name"

_HEX_DIGEST = re.compile(r"^[0-9a-fA-F]{64}$")

# Longest prefixes first so "contract-package-" wins over "contract-".
_PREFIXES = (
    ("entity-contract-", IDENTITY_KIND_CONTRACT),
    ("entity-account-", IDENTITY_KIND_ACCOUNT),
    ("contract-package-", IDENTITY_KIND_CONTRACT),
    ("account-hash-", IDENTITY_KIND_ACCOUNT),
    ("contract-", IDENTITY_KIND_CONTRACT),
    ("package-", IDENTITY_KIND_CONTRACT),
    ("hash-", IDENTITY_KIND_CONTRACT),
)


@dataclass(frozen=True, slots=True)
class Identity:
    """
    Canonical form of a caller.

    Attributes:
        kind: contract, account, or name (opaque, e.g. a test wallet)
        value: lower-cased 64-hex digest, or the stripped name
    """
    kind: str
    value: str

    @property
    def key(self) -> str:
        """Stable string form, suitable for storing in unit state."""
        return f"{self.kind}:{self.value}"

    @classmethod
    def from_key(cls, key: str) -> Identity:
        """Inverse of key."""
        kind, _, value = key.partition(":")
        if not kind or not value:
            raise ValueError(f"not an identity key: {key!r}")
        return cls(kind, value)

    def __str__(self) -> str:
        return self.key


def canonical_identity(raw: Union[str, Identity]) -> Identity:
    """
    Reduce an identity string to its canonical form.

    Raises:
        ValueError: if raw is empty
    """
    if isinstance(raw, Identity):
        return raw
    text = raw.strip() if raw else ""
    if not text:
        raise ValueError("identity cannot be empty")

    lowered = text.lower()
    for prefix, kind in _PREFIXES:
        if lowered.startswith(prefix):
            digest = text[len(prefix):]
            if _HEX_DIGEST.match(digest):
                return Identity(kind, digest.lower())
            break

    # A bare digest is how contract hashes are rendered without a wrapper.
    if _HEX_DIGEST.match(text):
        return Identity(IDENTITY_KIND_CONTRACT, text.lower())
    return Identity(IDENTITY_KIND_NAME, text)


def same_entity(a: Union[str, Identity], b: Union[str, Identity]) -> bool:
    """True when a and b are encodings of the same caller."""
    return canonical_identity(a) == canonical_identity(b)
