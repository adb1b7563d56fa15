"""
Aesthetic codeword selection.

A QR block of n bytes with k data bytes has exactly n - k degrees of
freedom: once any k byte values are chosen, the remaining n - k are fixed
by the RS parity equations. Instead of spending that freedom on the
trailing EC bytes, the optimizer decides per block which bytes should
look like the target picture (fixed) and which ones are left for the
solver (free). Header and data bits are always fixed to their literal
values; padding and EC bytes are fixed to the target picture where the
picture matters most.
"""

import logging
import math
from typing import List, NamedTuple, Sequence

from .encoder import (BlockPair, SymbolPlan, bits_to_bytes, block_sizes,
                      build_final_to_data_mapping, interleave_blocks, invert_mapping)
from .exceptions import InvalidArgumentError
from .matrix import QRMatrix, get_data_mask_bit
from .reed_solomon import ReedSolomonEncoder

logger = logging.getLogger(__name__)

# Importance given to header and data bits so they are always ranked first
HEADER_IMPORTANCE = math.inf


class RankedByte(NamedTuple):
    importance: float
    index: int


def check_grid(grid: Sequence[Sequence], dimension: int, name: str):
    if len(grid) != dimension or any(len(row) != dimension for row in grid):
        raise InvalidArgumentError(f"{name} must be {dimension}x{dimension}")


def check_importance(importance: Sequence[Sequence[float]], dimension: int):
    check_grid(importance, dimension, "Importance map")
    for row in importance:
        for value in row:
            if not math.isfinite(value) or value < 0:
                raise InvalidArgumentError(f"Importance must be finite and non-negative, got {value}")


def select_fixed_positions(importances: Sequence[float], known_count: int) -> List[bool]:
    """
    Flag the known_count most important positions as fixed.

    The sort is stable, so among equally important bytes the earlier
    position wins.
    """
    ranked = sorted((RankedByte(value, i) for i, value in enumerate(importances)),
                    key=lambda r: r.importance, reverse=True)
    fixed = [False] * len(importances)
    for r in ranked[:known_count]:
        fixed[r.index] = True
    return fixed


class OptimizedCodewords:
    """Interleaved codewords plus the per-block fixed/free decisions."""

    def __init__(self, codewords: List[int], blocks: List[BlockPair],
                 fixed_flags: List[List[bool]], desired_bits: List[int]):
        self.codewords = codewords
        self.blocks = blocks
        self.fixed_flags = fixed_flags
        self.desired_bits = desired_bits


class AestheticOptimizer:
    """
    Chooses free codeword positions per block from an importance map and
    fills them with erasure-fill RS encoding.
    """

    def __init__(self, rs: ReedSolomonEncoder):
        self.rs = rs

    def desired_bits(self, plan: SymbolPlan, qr_matrix: QRMatrix,
                     target: Sequence[Sequence[bool]],
                     importance: Sequence[Sequence[float]],
                     mask_pattern: int):
        """
        Desired value and importance of every bit, in block order.

        Bits past the header are pre-flipped with the mask so that the
        masked module shows the target colour.
        """
        version = plan.version
        total_bits = version.total_codewords * 8
        coordinates = qr_matrix.data_coordinates()[:total_bits]
        data_to_final = invert_mapping(build_final_to_data_mapping(version, plan.ec_level))

        header = plan.header_and_data_bits
        bits, bit_importance = [], []
        for i in range(total_bits):
            if i < len(header):
                bits.append(header[i])
                bit_importance.append(HEADER_IMPORTANCE)
            else:
                row, col = coordinates[data_to_final[i]]
                bit = 1 if target[row][col] else 0
                if get_data_mask_bit(mask_pattern, row, col):
                    bit ^= 1
                bits.append(bit)
                bit_importance.append(importance[row][col])
        return bits, bit_importance

    def optimize(self, plan: SymbolPlan, qr_matrix: QRMatrix,
                 target: Sequence[Sequence[bool]],
                 importance: Sequence[Sequence[float]],
                 mask_pattern: int = 0) -> OptimizedCodewords:
        dimension = plan.version.dimension
        check_grid(target, dimension, "Target pattern")
        check_importance(importance, dimension)

        bits, bit_importance = self.desired_bits(plan, qr_matrix, target, importance, mask_pattern)
        desired_bytes = bits_to_bytes(bits)
        byte_importance = [max(bit_importance[i:i + 8]) for i in range(0, len(bit_importance), 8)]

        num_data_bytes = plan.num_data_bytes
        sizes = block_sizes(plan.num_total_bytes, num_data_bytes, plan.ec_blocks)

        blocks, fixed_flags = [], []
        data_offset, ec_offset = 0, num_data_bytes
        for data_len, ec_len in sizes:
            codeword = (desired_bytes[data_offset:data_offset + data_len]
                        + desired_bytes[ec_offset:ec_offset + ec_len])
            importances = (byte_importance[data_offset:data_offset + data_len]
                           + byte_importance[ec_offset:ec_offset + ec_len])

            fixed = select_fixed_positions(importances, data_len)
            self.rs.encode_erasures(codeword, fixed, data_len)

            blocks.append(BlockPair(codeword[:data_len], codeword[data_len:]))
            fixed_flags.append(fixed)
            data_offset += data_len
            ec_offset += ec_len

        logger.debug("Solved %d blocks, %d free bytes each", len(blocks), sizes[0][1])
        codewords = interleave_blocks(blocks, plan.num_total_bytes)
        return OptimizedCodewords(codewords, blocks, fixed_flags, bits)
