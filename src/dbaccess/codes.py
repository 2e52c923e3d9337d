# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Human-friendly random codes.

Codes use digits and ASCII letters, skipping the look-alikes ``0``/``O``
and ``1``/``l``. After two consecutive non-digits the next character is
always a digit, which keeps codes readable and prevents longer words
(offensive ones included) from appearing by chance.
"""

from __future__ import annotations

import random
import secrets
import string

AMBIGUOUS = frozenset("01Ol")

DIGITS = "".join(c for c in string.digits if c not in AMBIGUOUS)
LETTERS = "".join(c for c in string.ascii_letters if c not in AMBIGUOUS)
ALPHABET = DIGITS + LETTERS

# Longest allowed run of non-digit characters
MAX_LETTER_RUN = 2

_system_random = secrets.SystemRandom()


def generate_code(length: int, rng: random.Random | None = None) -> str:
    """Generate a random code of the given length.

    Args:
        length: Number of characters, at least 1.
        rng: Random source; defaults to the system CSPRNG.

    Raises:
        ValueError: If length is smaller than 1.
    """
    if length < 1:
        raise ValueError(f"Code length must be at least 1, got {length}")
    rng = rng or _system_random
    chars: list[str] = []
    letter_run = 0
    for _ in range(length):
        pool = DIGITS if letter_run >= MAX_LETTER_RUN else ALPHABET
        char = rng.choice(pool)
        if char in DIGITS:
            letter_run = 0
        else:
            letter_run += 1
        chars.append(char)
    return "".join(chars)


def is_valid_code(code: str, length: int | None = None) -> bool:
    """Check a code against the alphabet and the digit spacing rule."""
    if not code or (length is not None and len(code) != length):
        return False
    letter_run = 0
    for char in code:
        if char not in ALPHABET:
            return False
        if char in DIGITS:
            letter_run = 0
        else:
            letter_run += 1
            if letter_run > MAX_LETTER_RUN:
                return False
    return True


__all__ = ["ALPHABET", "AMBIGUOUS", "DIGITS", "LETTERS", "generate_code", "is_valid_code"]
