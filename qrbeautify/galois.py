"""
Galois Field GF(2^8) arithmetic for QR codes.

Uses the primitive polynomial x^8 + x^4 + x^3 + x^2 + 1 (0x11d = 285)
with generator alpha = 2 and generator base 0, as QR codes require.

References:
- https://en.wikipedia.org/wiki/Finite_field_arithmetic
- https://research.swtch.com/field
"""

from typing import List

from .exceptions import FieldDomainError


QR_CODE_PRIMITIVE_POLY = 0x11d  # x^8 + x^4 + x^3 + x^2 + 1 = 285
QR_CODE_FIELD_SIZE = 256
QR_CODE_GENERATOR_BASE = 0


class GF256:
    """
    Galois Field GF(2^8) with log/antilog tables.

    One instance is built by whoever drives the encode and handed to every
    polynomial and codec that needs it. The tables are never modified after
    construction, so a single instance can be shared freely.
    """

    def __init__(self, primitive: int = QR_CODE_PRIMITIVE_POLY,
                 size: int = QR_CODE_FIELD_SIZE,
                 generator_base: int = QR_CODE_GENERATOR_BASE):
        """Initialize the field with precomputed exp and log tables."""
        self.primitive = primitive
        self.size = size
        self.generator_base = generator_base
        self.exp_table: List[int] = [0] * size
        self.log_table: List[int] = [0] * size
        self._build_tables()

    def _build_tables(self):
        """Build exponential and logarithm lookup tables using alpha = 2."""
        x = 1
        for i in range(self.size):
            self.exp_table[i] = x
            x <<= 1
            if x >= self.size:
                x ^= self.primitive
                x &= self.size - 1
        for i in range(self.size - 1):
            self.log_table[self.exp_table[i]] = i
        # log_table[0] stays 0 but is never consulted

    def __repr__(self) -> str:
        return f"GF(0x{self.primitive:x},{self.size})"

    def add(self, a: int, b: int) -> int:
        """Addition in GF(256) is XOR."""
        return a ^ b

    def subtract(self, a: int, b: int) -> int:
        """Subtraction in GF(256) is the same as addition."""
        return a ^ b

    def exp(self, i: int) -> int:
        """alpha^i, with the exponent taken modulo size - 1."""
        return self.exp_table[i % (self.size - 1)]

    def log(self, a: int) -> int:
        """Discrete logarithm of a non-zero element."""
        if a == 0:
            raise FieldDomainError("log(0) is undefined in GF(256)")
        return self.log_table[a]

    def multiply(self, a: int, b: int) -> int:
        """Multiply two GF(256) elements using log tables."""
        if a == 0 or b == 0:
            return 0
        return self.exp_table[(self.log_table[a] + self.log_table[b]) % (self.size - 1)]

    def divide(self, a: int, b: int) -> int:
        """Divide a by b in GF(256)."""
        if b == 0:
            raise ZeroDivisionError("Division by zero in GF(256)")
        if a == 0:
            return 0
        return self.exp_table[(self.log_table[a] - self.log_table[b]) % (self.size - 1)]

    def power(self, a: int, n: int) -> int:
        """Raise a to the power n in GF(256)."""
        if a == 0:
            return 0 if n > 0 else 1
        return self.exp_table[(self.log_table[a] * n) % (self.size - 1)]

    def inverse(self, a: int) -> int:
        """Find multiplicative inverse of a in GF(256)."""
        if a == 0:
            raise ZeroDivisionError("No inverse for 0")
        # a^(-1) = a^254 since a^255 = 1
        return self.exp_table[(self.size - 1) - self.log_table[a]]
