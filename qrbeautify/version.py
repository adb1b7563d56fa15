"""
Version and error correction tables for QR versions 1-40.

The per-version totals follow Table 9 of ISO/IEC 18004. Block layouts
(group 1 / group 2 sizes) are derived from the totals: every block carries
the same number of EC codewords and group 2 blocks hold one extra data
codeword.
"""

from typing import Dict, List, Tuple

from .exceptions import InterleavingError, InvalidArgumentError


MIN_VERSION = 1
MAX_VERSION = 40

# Error correction level bits as written into the format information
EC_LEVEL_BITS = {
    'L': 0b01,
    'M': 0b00,
    'Q': 0b11,
    'H': 0b10
}

EC_LEVELS = ('L', 'M', 'Q', 'H')

# Total EC codewords per version, ordered L, M, Q, H
EC_CODEWORDS = (
    (7, 10, 13, 17), (10, 16, 22, 28), (15, 26, 36, 44), (20, 36, 52, 64),
    (26, 48, 72, 88), (36, 64, 96, 112), (40, 72, 108, 130), (48, 88, 132, 156),
    (60, 110, 160, 192), (72, 130, 192, 224), (80, 150, 224, 264), (96, 176, 260, 308),
    (104, 198, 288, 352), (120, 216, 320, 384), (132, 240, 360, 432), (144, 280, 408, 480),
    (168, 308, 448, 532), (180, 338, 504, 588), (196, 364, 546, 650), (224, 416, 600, 700),
    (224, 442, 644, 750), (252, 476, 690, 816), (270, 504, 750, 900), (300, 560, 810, 960),
    (312, 588, 870, 1050), (336, 644, 952, 1110), (360, 700, 1020, 1200), (390, 728, 1050, 1260),
    (420, 784, 1140, 1350), (450, 812, 1200, 1440), (480, 868, 1290, 1530), (510, 924, 1350, 1620),
    (540, 980, 1440, 1710), (570, 1036, 1530, 1800), (570, 1064, 1590, 1890), (600, 1120, 1680, 1980),
    (630, 1204, 1770, 2100), (660, 1260, 1860, 2220), (720, 1316, 1950, 2310), (750, 1372, 2040, 2430),
)

# Number of RS blocks per version, ordered L, M, Q, H
NUM_BLOCKS = (
    (1, 1, 1, 1), (1, 1, 1, 1), (1, 1, 2, 2), (1, 2, 2, 4), (1, 2, 4, 4),
    (2, 4, 4, 4), (2, 4, 6, 5), (2, 4, 6, 6), (2, 5, 8, 8), (4, 5, 8, 8),
    (4, 5, 8, 11), (4, 8, 10, 11), (4, 9, 12, 16), (4, 9, 16, 16), (6, 10, 12, 18),
    (6, 10, 17, 16), (6, 11, 16, 19), (6, 13, 18, 21), (7, 14, 21, 25), (8, 16, 20, 25),
    (8, 17, 23, 25), (9, 17, 23, 34), (9, 18, 25, 30), (10, 20, 27, 32), (12, 21, 29, 35),
    (12, 23, 34, 37), (12, 25, 34, 40), (13, 26, 35, 42), (14, 28, 38, 45), (15, 29, 40, 48),
    (16, 31, 43, 51), (17, 33, 45, 54), (18, 35, 48, 57), (19, 37, 51, 60), (19, 38, 53, 63),
    (20, 40, 56, 66), (21, 43, 59, 70), (22, 45, 62, 74), (24, 47, 65, 77), (25, 49, 68, 81),
)


def check_ec_level(ec_level: str) -> str:
    if ec_level not in EC_LEVEL_BITS:
        raise InvalidArgumentError(f"Invalid error correction level: {ec_level}")
    return ec_level


def alignment_positions(version: int) -> List[int]:
    """Row/column coordinates of alignment pattern centres."""
    if version == 1:
        return []
    size = 4 * version + 17
    num_align = version // 7 + 2
    step = (version * 8 + num_align * 3 + 5) // (num_align * 4 - 4) * 2
    positions = [size - 7 - i * step for i in range(num_align - 1)] + [6]
    return list(reversed(positions))


def num_raw_data_modules(version: int) -> int:
    """Modules left for codewords and remainder bits once function patterns are drawn."""
    result = (16 * version + 128) * version + 64
    if version >= 2:
        num_align = version // 7 + 2
        result -= (25 * num_align - 10) * num_align - 55
        if version >= 7:
            result -= 36
    return result


class ECBlocks:
    """
    Block structure for one version at one EC level.

    blocks is a list of (count, data_codewords) groups; every block has
    ec_codewords_per_block error correction codewords.
    """

    def __init__(self, ec_codewords_per_block: int, blocks: List[Tuple[int, int]]):
        self.ec_codewords_per_block = ec_codewords_per_block
        self.blocks = blocks

    @property
    def num_blocks(self) -> int:
        return sum(count for count, _ in self.blocks)

    @property
    def total_ec_codewords(self) -> int:
        return self.ec_codewords_per_block * self.num_blocks

    def block_sizes(self) -> List[Tuple[int, int]]:
        """(data_len, ec_len) for every block in transmission order."""
        sizes = []
        for count, data_codewords in self.blocks:
            sizes.extend([(data_codewords, self.ec_codewords_per_block)] * count)
        return sizes

    def __repr__(self) -> str:
        return f"ECBlocks(ec={self.ec_codewords_per_block}, blocks={self.blocks})"


class Version:
    """One of the 40 QR versions."""

    def __init__(self, number: int):
        if not (MIN_VERSION <= number <= MAX_VERSION):
            raise InvalidArgumentError(f"Version must be {MIN_VERSION}-{MAX_VERSION}, got {number}")
        self.number = number
        self.dimension = 4 * number + 17
        self.total_codewords = num_raw_data_modules(number) // 8
        self.remainder_bits = num_raw_data_modules(number) % 8
        self.alignment_positions = alignment_positions(number)
        self._ec_blocks: Dict[str, ECBlocks] = {}
        for index, level in enumerate(EC_LEVELS):
            self._ec_blocks[level] = self._split_blocks(
                EC_CODEWORDS[number - 1][index], NUM_BLOCKS[number - 1][index])

    def _split_blocks(self, total_ec: int, num_blocks: int) -> ECBlocks:
        """
        Divide the codewords into group 1 and group 2 blocks. See table 12 in
        8.5.1 of JISX0510:2004 (p.30).
        """
        num_data = self.total_codewords - total_ec
        # Version 7-H: 196 total, 130 EC, 5 blocks -> 4 x (13 + 26) and 1 x (14 + 26)
        blocks_in_group2 = self.total_codewords % num_blocks
        blocks_in_group1 = num_blocks - blocks_in_group2
        total_in_group1 = self.total_codewords // num_blocks
        data_in_group1 = num_data // num_blocks
        ec_in_group1 = total_in_group1 - data_in_group1
        ec_in_group2 = (total_in_group1 + 1) - (data_in_group1 + 1)
        if ec_in_group1 != ec_in_group2:
            raise InterleavingError("EC bytes mismatch")
        if ec_in_group1 * num_blocks != total_ec:
            raise InterleavingError(f"EC total mismatch for version {self.number}")
        if self.total_codewords != ((data_in_group1 + ec_in_group1) * blocks_in_group1
                                    + (data_in_group1 + 1 + ec_in_group2) * blocks_in_group2):
            raise InterleavingError("Total bytes mismatch")

        groups = [(blocks_in_group1, data_in_group1)]
        if blocks_in_group2:
            groups.append((blocks_in_group2, data_in_group1 + 1))
        return ECBlocks(ec_in_group1, groups)

    def get_ec_blocks(self, ec_level: str) -> ECBlocks:
        return self._ec_blocks[check_ec_level(ec_level)]

    def num_data_codewords(self, ec_level: str) -> int:
        return self.total_codewords - self.get_ec_blocks(ec_level).total_ec_codewords

    def __repr__(self) -> str:
        return f"Version({self.number})"


_VERSIONS = [Version(number) for number in range(MIN_VERSION, MAX_VERSION + 1)]


def get_version(number: int) -> Version:
    """Look up a version by number (1-40)."""
    if not (MIN_VERSION <= number <= MAX_VERSION):
        raise InvalidArgumentError(f"Version must be {MIN_VERSION}-{MAX_VERSION}, got {number}")
    return _VERSIONS[number - 1]
