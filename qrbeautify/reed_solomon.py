"""
Reed-Solomon encoding for QR code error correction.

Besides the usual systematic encoder this module provides erasure-fill
encoding: given a codeword in which any n - k positions are marked free,
it solves for the free bytes so that the whole sequence is a valid
codeword. The free positions need not be a trailing suffix, because an RS
codeword is defined only by its parity-check equations

    sum_j c_j * alpha^(i * (n - 1 - j)) = 0    for i in [0, n - k)

and any n - k columns of that system are independent (RS is MDS).

References:
- https://en.wikipedia.org/wiki/Reed-Solomon_error_correction
- https://en.wikiversity.org/wiki/Reed-Solomon_codes_for_coders
"""

import threading
from typing import List, Sequence

from .bytematrix import ByteMatrix
from .exceptions import InvalidArgumentError, UnsolvableError
from .galois import GF256
from .polynomial import Polynomial


class ReedSolomonEncoder:
    """
    Reed-Solomon encoder over one GF(256) instance.

    Generator polynomials are cached by degree. The cache only grows;
    extending it is serialised with a lock while lookups of degrees that are
    already present never take the lock.
    """

    def __init__(self, gf: GF256):
        self.gf = gf
        self._generator_cache: List[Polynomial] = [Polynomial(gf, [1])]
        self._cache_lock = threading.Lock()

    def build_generator(self, degree: int) -> Polynomial:
        """
        Build generator polynomial for given number of EC codewords.

        g(x) = (x - alpha^base)(x - alpha^(base+1))...(x - alpha^(base+degree-1))

        In GF(256), subtraction equals addition.
        """
        cache = self._generator_cache
        if degree < len(cache):
            return cache[degree]

        with self._cache_lock:
            last_generator = cache[-1]
            for d in range(len(cache), degree + 1):
                # Multiply by (x + alpha^(d - 1 + base))
                factor = Polynomial(self.gf, [1, self.gf.exp(d - 1 + self.gf.generator_base)])
                last_generator = last_generator.multiply(factor)
                cache.append(last_generator)
            return cache[degree]

    def encode(self, to_encode: List[int], ec_bytes: int):
        """
        Systematic encode in place.

        Args:
            to_encode: data bytes followed by ec_bytes slots; the slots are
                overwritten with the error correction codewords
            ec_bytes: number of error correction codewords
        """
        if ec_bytes == 0:
            raise InvalidArgumentError("No error correction bytes")
        data_bytes = len(to_encode) - ec_bytes
        if data_bytes <= 0:
            raise InvalidArgumentError("No data bytes provided")

        generator = self.build_generator(ec_bytes)
        info = Polynomial(self.gf, to_encode[:data_bytes])
        info = info.multiply_by_monomial(ec_bytes, 1)
        _, remainder = info.divide(generator)

        coefficients = remainder.coeffs
        num_zero_coefficients = ec_bytes - len(coefficients)
        for i in range(num_zero_coefficients):
            to_encode[data_bytes + i] = 0
        to_encode[data_bytes + num_zero_coefficients:] = coefficients

    def generate_ec_bytes(self, data: Sequence[int], ec_bytes: int) -> List[int]:
        """Return the error correction codewords for data without touching it."""
        to_encode = list(data) + [0] * ec_bytes
        self.encode(to_encode, ec_bytes)
        return to_encode[len(data):]

    def encode_erasures(self, codeword: List[int], fixed: Sequence[bool], known_count: int):
        """
        Fill the free positions of codeword in place.

        Args:
            codeword: n bytes; values at fixed positions are inputs, values
                at free positions are overwritten
            fixed: one flag per position, True where the byte is known
            known_count: number of True flags; n - known_count is the number
                of parity equations and therefore of solvable unknowns
        """
        n = len(codeword)
        if len(fixed) != n:
            raise InvalidArgumentError(f"Flag count {len(fixed)} does not match codeword length {n}")
        if n > self.gf.size - 1:
            raise InvalidArgumentError(f"Codeword of {n} bytes is longer than the field allows")
        if sum(1 for f in fixed if f) != known_count:
            raise InvalidArgumentError(f"Expected {known_count} fixed positions")
        m = n - known_count
        if m <= 0:
            raise InvalidArgumentError(f"No free positions among {n} bytes")

        free_positions = [i for i in range(n) if not fixed[i]]
        fixed_positions = [i for i in range(n) if fixed[i]]

        a = self._build_system(free_positions, n)
        for i, y in enumerate(self._parity_syndromes(codeword, fixed_positions, m)):
            a.set(i, m, y)

        self._eliminate(a, m)
        self._back_substitute(a, m)

        for row, position in enumerate(free_positions):
            codeword[position] = a.get(row, m)

    def _build_system(self, free_positions: List[int], n: int) -> ByteMatrix:
        """Coefficient block of the augmented matrix: alpha^(i * (n-1-free[j]))."""
        m = len(free_positions)
        a = ByteMatrix(m, m + 1)
        for i in range(m):
            for j, position in enumerate(free_positions):
                a.set(i, j, self.gf.exp(i * (n - 1 - position)))
        return a

    def _parity_syndromes(self, codeword: Sequence[int], fixed_positions: List[int],
                          m: int) -> List[int]:
        """Contribution of the known bytes to each parity equation."""
        n = len(codeword)
        syndromes = [0] * m
        for i in range(m):
            y = 0
            for position in fixed_positions:
                value = codeword[position]
                if value != 0:
                    y ^= self.gf.exp(self.gf.log(value) + i * (n - 1 - position))
            syndromes[i] = y
        return syndromes

    def _eliminate(self, a: ByteMatrix, m: int):
        """
        Forward Gaussian elimination on the m x (m+1) augmented matrix.

        The pivot is the row holding the numerically largest table value in
        the current column (first one on ties). GF(256) has no ordering, so
        any non-zero pivot would do; this rule keeps output reproducible.
        """
        gf = self.gf
        for k in range(m):
            pivot = k
            for i in range(k, m):
                if a.get(i, k) > a.get(pivot, k):
                    pivot = i
            if a.get(pivot, k) == 0:
                raise UnsolvableError(f"Pivot column {k} is zero; erasure pattern is degenerate")
            if pivot != k:
                a.swap_rows(k, pivot)

            pivot_log = gf.log(a.get(k, k))
            for i in range(k + 1, m):
                if a.get(i, k) == 0:
                    continue
                delta = gf.log(a.get(i, k)) - pivot_log
                for j in range(k, m + 1):
                    value = a.get(k, j)
                    if value != 0:
                        a.set(i, j, a.get(i, j) ^ gf.exp(gf.log(value) + delta))

    def _back_substitute(self, a: ByteMatrix, m: int):
        """Solve the upper-triangular system, leaving x[i] in the augmented column."""
        gf = self.gf
        for i in range(m - 1, -1, -1):
            acc = a.get(i, m)
            for j in range(i + 1, m):
                acc ^= gf.multiply(a.get(i, j), a.get(j, m))
            a.set(i, m, gf.divide(acc, a.get(i, i)))
