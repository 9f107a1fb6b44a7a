"""Filename-safe identifiers built from 128 random bits.

Identifiers use the RFC 4648 Base32 alphabet without padding. The alphabet
has no lowercase letters and no punctuation, so names never collide on
case-insensitive file systems and never need escaping.
"""

import base64
import uuid

from tempstore.exceptions import ValidationException

# Size of the random value encoded into every identifier
IDENTIFIER_BYTES = 16

# ceil(128 / 5) symbols; the last one carries 3 data bits and 2 zero bits
IDENTIFIER_LENGTH = 26

IDENTIFIER_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"


def encode_identifier(value: bytes) -> str:
    """Encode a 128-bit value as a 26-character Base32 token.

    Args:
        value: Exactly 16 bytes

    Returns:
        Padding-free Base32 text of length 26

    Raises:
        ValidationException: If value is not 16 bytes long
    """
    if len(value) != IDENTIFIER_BYTES:
        raise ValidationException(
            f"Identifier value must be {IDENTIFIER_BYTES} bytes, got {len(value)}"
        )
    return base64.b32encode(bytes(value)).decode("ascii").rstrip("=")


def new_identifier() -> str:
    """Generate a fresh random identifier."""
    return encode_identifier(uuid.uuid4().bytes)
