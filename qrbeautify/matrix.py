"""
QR code matrix construction, data placement and masking.

References:
- https://www.thonky.com/qr-code-tutorial/module-placement-matrix
- https://www.thonky.com/qr-code-tutorial/data-masking
- JISX0510:2004 sections 8.7 - 8.10
"""

from typing import Callable, List, Sequence, Tuple

from .bytematrix import ByteMatrix
from .exceptions import InvalidArgumentError
from .version import EC_LEVEL_BITS, Version, check_ec_level


#==============================================================================
# BCH CODES FOR FORMAT AND VERSION INFORMATION
#==============================================================================

# BCH generator polynomial: x^10 + x^8 + x^5 + x^4 + x^2 + x + 1
FORMAT_INFO_POLY = 0b10100110111

# Format mask pattern
FORMAT_INFO_MASK = 0b101010000010010

# BCH generator polynomial: x^12 + x^11 + x^10 + x^9 + x^8 + x^5 + x^2 + 1
VERSION_INFO_POLY = 0b1111100100101

NUM_MASK_PATTERNS = 8


def calculate_bch_code(value: int, poly: int) -> int:
    """Remainder of value * x^deg(poly) divided by poly over GF(2)."""
    msb_in_poly = poly.bit_length()
    value <<= msb_in_poly - 1
    while value.bit_length() >= msb_in_poly:
        value ^= poly << (value.bit_length() - msb_in_poly)
    return value


def get_format_string(ec_level: str, mask_pattern: int) -> int:
    """Generate the complete 15-bit format string."""
    check_mask_pattern(mask_pattern)
    data_5bits = (EC_LEVEL_BITS[check_ec_level(ec_level)] << 3) | mask_pattern
    encoded = (data_5bits << 10) | calculate_bch_code(data_5bits, FORMAT_INFO_POLY)
    return encoded ^ FORMAT_INFO_MASK


def get_version_string(version: int) -> int:
    """18-bit version information: 6 version bits and 12 BCH bits."""
    return (version << 12) | calculate_bch_code(version, VERSION_INFO_POLY)


def check_mask_pattern(mask_pattern: int) -> int:
    if not (0 <= mask_pattern < NUM_MASK_PATTERNS):
        raise InvalidArgumentError(f"Mask pattern must be 0-7, got {mask_pattern}")
    return mask_pattern


#==============================================================================
# DATA MASKING
#==============================================================================

MASK_PATTERNS: List[Callable[[int, int], bool]] = [
    lambda r, c: (r + c) % 2 == 0,
    lambda r, c: r % 2 == 0,
    lambda r, c: c % 3 == 0,
    lambda r, c: (r + c) % 3 == 0,
    lambda r, c: (r // 2 + c // 3) % 2 == 0,
    lambda r, c: (r * c) % 2 + (r * c) % 3 == 0,
    lambda r, c: ((r * c) % 2 + (r * c) % 3) % 2 == 0,
    lambda r, c: ((r + c) % 2 + (r * c) % 3) % 2 == 0,
]


def get_data_mask_bit(mask_pattern: int, row: int, col: int) -> bool:
    """True when the mask flips the module at (row, col)."""
    return MASK_PATTERNS[check_mask_pattern(mask_pattern)](row, col)


#==============================================================================
# QR CODE MATRIX CONSTRUCTION
#==============================================================================

class QRMatrix:
    """
    QR Code matrix construction and manipulation.

    matrix holds None for unassigned modules, 0 for light and 1 for dark.
    is_function marks finder, separator, timing, alignment, dark module,
    format and version areas: the modules data bits never go to.
    """

    def __init__(self, version: Version):
        self.version = version
        self.size = version.dimension

        self.matrix = ByteMatrix(self.size, self.size, fill=None)
        self.is_function = ByteMatrix(self.size, self.size, fill=0)

        self._place_function_patterns()

    def _place_function_patterns(self):
        """Place all function patterns."""
        self._place_finder_patterns()
        self._place_separators()
        self._place_timing_patterns()
        self._place_alignment_patterns()
        self._place_dark_module()
        self._reserve_format_area()
        if self.version.number >= 7:
            self._place_version_info()

    def _place_finder_patterns(self):
        """Place the three finder patterns."""
        positions = [
            (0, 0),                          # Top-left
            (self.size - 7, 0),              # Top-right
            (0, self.size - 7)               # Bottom-left
        ]
        for (x, y) in positions:
            self._place_finder_pattern(x, y)

    def _place_finder_pattern(self, x: int, y: int):
        """Place a single finder pattern with its top-left corner at (x, y)."""
        for dy in range(7):
            for dx in range(7):
                if (dy == 0 or dy == 6 or dx == 0 or dx == 6 or
                        (2 <= dx <= 4 and 2 <= dy <= 4)):
                    value = 1
                else:
                    value = 0
                self._set_function(x + dx, y + dy, value)

    def _place_separators(self):
        """Place light separators around finder patterns."""
        for i in range(8):
            # Horizontal
            self._set_function(i, 7, 0)
            self._set_function(self.size - 8 + i, 7, 0)
            self._set_function(i, self.size - 8, 0)
            # Vertical
            self._set_function(7, i, 0)
            self._set_function(self.size - 8, i, 0)
            self._set_function(7, self.size - 8 + i, 0)

    def _place_timing_patterns(self):
        """Place timing patterns (row 6 and column 6)."""
        for i in range(8, self.size - 8):
            value = (i + 1) % 2
            self._set_function(i, 6, value)
            self._set_function(6, i, value)

    def _place_alignment_patterns(self):
        """Place alignment patterns for version 2+."""
        positions = self.version.alignment_positions
        for row in positions:
            for col in positions:
                if self._overlaps_finder(row, col):
                    continue
                self._place_alignment_pattern(col, row)

    def _overlaps_finder(self, row: int, col: int) -> bool:
        """Check if alignment pattern would overlap finder patterns."""
        if row <= 8 and col <= 8:
            return True
        if row <= 8 and col >= self.size - 9:
            return True
        if row >= self.size - 9 and col <= 8:
            return True
        return False

    def _place_alignment_pattern(self, x: int, y: int):
        """Place a single alignment pattern centered at (x, y)."""
        for dy in range(-2, 3):
            for dx in range(-2, 3):
                if abs(dy) == 2 or abs(dx) == 2 or (dy == 0 and dx == 0):
                    value = 1
                else:
                    value = 0
                self._set_function(x + dx, y + dy, value)

    def _place_dark_module(self):
        """Place the dark module."""
        self._set_function(8, 4 * self.version.number + 9, 1)

    def _reserve_format_area(self):
        """Reserve space for format information."""
        for i in range(9):
            self.is_function.set(8, i, 1)
            self.is_function.set(i, 8, 1)

        for i in range(8):
            self.is_function.set(8, self.size - 1 - i, 1)
            self.is_function.set(self.size - 1 - i, 8, 1)

    def _place_version_info(self):
        """Place both copies of the version information (version 7+)."""
        bits = get_version_string(self.version.number)
        for i in range(6):
            for j in range(3):
                bit = (bits >> (i * 3 + j)) & 1
                # Bottom-left block, then its transpose at the top-right
                self._set_function(i, self.size - 11 + j, bit)
                self._set_function(self.size - 11 + j, i, bit)

    def _set_function(self, x: int, y: int, value: int):
        """Set a function pattern module at column x, row y."""
        if 0 <= x < self.size and 0 <= y < self.size:
            self.matrix.set(y, x, value)
            self.is_function.set(y, x, 1)

    def data_coordinates(self) -> List[Tuple[int, int]]:
        """
        (row, col) of every data module in placement order: two-column
        strips from the right edge, alternating upward and downward,
        skipping the vertical timing pattern.
        """
        coordinates = []
        x = self.size - 1
        upward = True

        while x >= 0:
            if x == 6:
                x -= 1

            y_range = range(self.size - 1, -1, -1) if upward else range(self.size)
            for y in y_range:
                for dx in [0, -1]:
                    col = x + dx
                    if col < 0:
                        continue
                    if self.is_function.get(y, col):
                        continue
                    coordinates.append((y, col))

            x -= 2
            upward = not upward

        return coordinates

    def place_data(self, data_bits: Sequence[int]) -> int:
        """Place data bits in zigzag pattern; remainder modules are light."""
        coordinates = self.data_coordinates()
        if len(data_bits) > len(coordinates):
            raise InvalidArgumentError(
                f"{len(data_bits)} bits do not fit {len(coordinates)} data modules")

        for bit_index, (row, col) in enumerate(coordinates):
            if bit_index < len(data_bits):
                self.matrix.set(row, col, data_bits[bit_index])
            else:
                self.matrix.set(row, col, 0)

        return len(data_bits)

    def apply_mask(self, mask_num: int) -> ByteMatrix:
        """Masked copy of the matrix; only data modules are flipped."""
        return apply_mask(self.matrix, self.is_function, mask_num)


def apply_mask(matrix: ByteMatrix, is_function: ByteMatrix, mask_num: int) -> ByteMatrix:
    """Apply mask pattern to data modules only."""
    mask_func = MASK_PATTERNS[check_mask_pattern(mask_num)]
    result = matrix.copy()
    for r in range(matrix.height):
        for c in range(matrix.width):
            value = matrix.get(r, c)
            if value is None:
                value = 0
            if not is_function.get(r, c) and mask_func(r, c):
                value ^= 1
            result.set(r, c, value)
    return result


def place_format_info(matrix: ByteMatrix, ec_level: str, mask: int):
    """Write both copies of the format information (never masked)."""
    size = matrix.width
    format_info = get_format_string(ec_level, mask)
    format_bits = [(format_info >> (14 - i)) & 1 for i in range(15)]

    # Primary position: around top-left finder
    # Bits 0-5: row 8, columns 0-5
    # Bit 6: row 8, column 7
    # Bit 7: row 8, column 8
    # Bits 8-14: column 8, rows 7 up to 0 (skipping 6)
    for i in range(6):
        matrix.set(8, i, format_bits[i])
    matrix.set(8, 7, format_bits[6])
    matrix.set(8, 8, format_bits[7])
    matrix.set(7, 8, format_bits[8])
    for i in range(6):
        matrix.set(5 - i, 8, format_bits[9 + i])

    # Secondary position
    # Bits 0-6: column 8, rows (size-1) up to (size-7)
    # Bits 7-14: row 8, columns (size-8) to (size-1)
    for i in range(7):
        matrix.set(size - 1 - i, 8, format_bits[i])
    for i in range(8):
        matrix.set(8, size - 8 + i, format_bits[7 + i])


#==============================================================================
# MASK PENALTY
#==============================================================================

# Penalty weights, see Table 21 of JISX0510:2004 (p.45)
N1 = 3
N2 = 3
N3 = 40
N4 = 10


def calculate_penalty(matrix: List[List[int]]) -> int:
    """Calculate total penalty score for a masked matrix."""
    size = len(matrix)
    penalty = 0
    penalty += _penalty_runs(matrix, size)
    penalty += _penalty_boxes(matrix, size)
    penalty += _penalty_finder_like(matrix, size)
    penalty += _penalty_balance(matrix, size)
    return penalty


def _run_penalty(line: Sequence[int]) -> int:
    penalty = 0
    run_length = 1
    for i in range(1, len(line)):
        if line[i] == line[i - 1]:
            run_length += 1
        else:
            if run_length >= 5:
                penalty += N1 + (run_length - 5)
            run_length = 1
    if run_length >= 5:
        penalty += N1 + (run_length - 5)
    return penalty


def _penalty_runs(matrix: List[List[int]], size: int) -> int:
    """Penalty for runs of 5+ same-color modules."""
    penalty = 0
    for r in range(size):
        penalty += _run_penalty(matrix[r])
    for c in range(size):
        penalty += _run_penalty([matrix[r][c] for r in range(size)])
    return penalty


def _penalty_boxes(matrix: List[List[int]], size: int) -> int:
    """Penalty for 2x2 same-color boxes."""
    penalty = 0
    for r in range(size - 1):
        for c in range(size - 1):
            color = matrix[r][c]
            if (matrix[r][c + 1] == color and matrix[r + 1][c] == color
                    and matrix[r + 1][c + 1] == color):
                penalty += N2
    return penalty


FINDER_LIKE = [1, 0, 1, 1, 1, 0, 1]


def _is_light(line: Sequence[int], start: int, end: int) -> bool:
    start = max(start, 0)
    end = min(end, len(line))
    return all(line[i] == 0 for i in range(start, end))


def _finder_penalty(line: Sequence[int]) -> int:
    penalty = 0
    for i in range(len(line) - 6):
        if (list(line[i:i + 7]) == FINDER_LIKE
                and (_is_light(line, i - 4, i) or _is_light(line, i + 7, i + 11))):
            penalty += N3
    return penalty


def _penalty_finder_like(matrix: List[List[int]], size: int) -> int:
    """Penalty for 1:1:3:1:1 patterns with four light modules on either side."""
    penalty = 0
    for r in range(size):
        penalty += _finder_penalty(matrix[r])
    for c in range(size):
        penalty += _finder_penalty([matrix[r][c] for r in range(size)])
    return penalty


def _penalty_balance(matrix: List[List[int]], size: int) -> int:
    """Penalty based on dark/light module ratio, 10 per 5% away from 50%."""
    dark_count = sum(sum(1 if c == 1 else 0 for c in row) for row in matrix)
    total = size * size
    five_percent_variances = abs(dark_count * 2 - total) * 10 // total
    return five_percent_variances * N4
