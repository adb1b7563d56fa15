"""
Complete QR code generator.

QRCodeGenerator.generate builds a standard symbol, choosing the mask with
the lowest penalty. QRCodeGenerator.beautify builds a symbol whose padding
and EC modules follow a target pattern as far as the RS code allows, with
the mask fixed up front.
"""

import logging
from typing import List, Optional, Sequence

from .beautify import AestheticOptimizer
from .bytematrix import ByteMatrix
from .encoder import MODE_NAMES, bytes_to_bits, interleave_with_ec_bytes, plan_symbol
from .exceptions import InvalidArgumentError
from .galois import GF256
from .matrix import (NUM_MASK_PATTERNS, QRMatrix, calculate_penalty, check_mask_pattern,
                     place_format_info)
from .reed_solomon import ReedSolomonEncoder
from .version import Version, check_ec_level

logger = logging.getLogger(__name__)

QUIET_ZONE_SIZE = 4


class QRCode:
    """A finished symbol: module matrix plus the parameters that produced it."""

    def __init__(self, matrix: ByteMatrix, is_function: ByteMatrix, version: Version,
                 ec_level: str, mode: int, mask_pattern: int, margin: int = QUIET_ZONE_SIZE):
        self.matrix = matrix
        self.is_function = is_function
        self.version = version
        self.ec_level = ec_level
        self.mode = mode
        self.mask_pattern = mask_pattern
        self.margin = margin
        # fixed_flags comes from beautify, penalty from generate
        self.fixed_flags: Optional[List[List[bool]]] = None
        self.penalty: Optional[int] = None

    @property
    def size(self) -> int:
        return self.matrix.width

    def to_list(self) -> List[List[int]]:
        """2D list of 0s and 1s representing the QR code."""
        return self.matrix.to_list()

    def __repr__(self) -> str:
        return (f"QRCode(version={self.version.number}, ec_level={self.ec_level}, "
                f"mode={MODE_NAMES[self.mode]}, mask={self.mask_pattern})")


class QRCodeGenerator:
    """Complete QR code generator."""

    def __init__(self, ec_level: str = 'M', encoding: Optional[str] = None,
                 margin: int = QUIET_ZONE_SIZE, gf: Optional[GF256] = None):
        """
        Initialize generator with error correction level.

        Args:
            ec_level: 'L' (7%), 'M' (15%), 'Q' (25%), or 'H' (30%)
            encoding: character encoding for byte mode; ISO-8859-1 when it
                fits the content, UTF-8 otherwise
            margin: quiet zone width in modules, used when rendering
            gf: field to compute in; a fresh GF(256) by default
        """
        self.ec_level = check_ec_level(ec_level)
        if margin < 0:
            raise InvalidArgumentError(f"Quiet zone must not be negative: {margin}")
        self.encoding = encoding
        self.margin = margin
        self.gf = gf or GF256()
        self.rs = ReedSolomonEncoder(self.gf)

    def generate(self, data: str, version: Optional[int] = None) -> QRCode:
        """
        Generate a QR code for the given data.

        Args:
            data: String to encode
            version: QR version (1-40), or None to auto-detect
        """
        plan = plan_symbol(data, self.ec_level, version, self.encoding)
        logger.info("Generating Version %d QR Code with EC Level %s (%s mode)",
                    plan.version.number, self.ec_level, MODE_NAMES[plan.mode])

        data_codewords = plan.data_codewords()
        final_message = interleave_with_ec_bytes(self.rs, data_codewords, plan.version,
                                                 self.ec_level)
        logger.debug("Codewords (%d): %s...", len(final_message), final_message[:10])

        qr = QRMatrix(plan.version)
        bits_placed = qr.place_data(bytes_to_bits(final_message))
        logger.debug("Placed %d bits in %dx%d matrix", bits_placed, qr.size, qr.size)

        best_mask, best_matrix, best_penalty = self._choose_best_mask(qr)
        logger.info("Applied mask pattern %d (penalty: %d)", best_mask, best_penalty)

        code = QRCode(best_matrix, qr.is_function, plan.version, self.ec_level,
                      plan.mode, best_mask, self.margin)
        code.penalty = best_penalty
        return code

    def _choose_best_mask(self, qr: QRMatrix):
        """Choose the mask pattern with lowest penalty (lowest index on ties)."""
        best_mask, best_matrix, best_penalty = 0, None, None
        for mask_num in range(NUM_MASK_PATTERNS):
            masked = qr.apply_mask(mask_num)
            place_format_info(masked, self.ec_level, mask_num)
            penalty = calculate_penalty(masked.to_list())
            if best_penalty is None or penalty < best_penalty:
                best_mask, best_matrix, best_penalty = mask_num, masked, penalty
        return best_mask, best_matrix, best_penalty

    def beautify(self, data: str, target: Sequence[Sequence[bool]],
                 importance: Sequence[Sequence[float]], version: Optional[int] = None,
                 mask_pattern: int = 0) -> QRCode:
        """
        Generate a QR code whose non-data modules lean toward a target image.

        Args:
            data: String to encode
            target: dimension x dimension grid, True where the module should be dark
            importance: dimension x dimension non-negative weights; modules
                with higher weight keep their target colour first
            version: QR version (1-40), or None to auto-detect
            mask_pattern: mask applied to the data modules (0-7)
        """
        check_mask_pattern(mask_pattern)
        plan = plan_symbol(data, self.ec_level, version, self.encoding)
        logger.info("Beautifying Version %d QR Code with EC Level %s, mask %d",
                    plan.version.number, self.ec_level, mask_pattern)

        qr = QRMatrix(plan.version)
        optimized = AestheticOptimizer(self.rs).optimize(plan, qr, target, importance,
                                                        mask_pattern)
        qr.place_data(bytes_to_bits(optimized.codewords))

        final_matrix = qr.apply_mask(mask_pattern)
        place_format_info(final_matrix, self.ec_level, mask_pattern)

        code = QRCode(final_matrix, qr.is_function, plan.version, self.ec_level,
                      plan.mode, mask_pattern, self.margin)
        code.fixed_flags = optimized.fixed_flags
        logger.info("Target agreement %.1f%%", 100.0 * target_agreement(code, target))
        return code


def target_agreement(code: QRCode, target: Sequence[Sequence[bool]]) -> float:
    """Fraction of data modules whose colour matches the target."""
    matching = total = 0
    for r in range(code.size):
        for c in range(code.size):
            if code.is_function.get(r, c):
                continue
            total += 1
            if code.matrix.get(r, c) == (1 if target[r][c] else 0):
                matching += 1
    return matching / total if total else 1.0
