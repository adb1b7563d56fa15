import unittest

from qrbeautify.bytematrix import ByteMatrix
from qrbeautify.exceptions import InvalidArgumentError
from qrbeautify.matrix import (QRMatrix, _finder_penalty, _penalty_balance, _penalty_boxes,
                               _run_penalty, apply_mask, calculate_penalty,
                               get_data_mask_bit, get_format_string, get_version_string,
                               place_format_info)
from qrbeautify.version import EC_LEVELS, get_version, num_raw_data_modules

from .qr_reader import read_format_info


class FormatAndVersionInfoTests(unittest.TestCase):
    def test_format_strings(self) -> None:
        self.assertEqual(0b111011111000100, get_format_string('L', 0))
        self.assertEqual(0b101010000010010, get_format_string('M', 0))
        self.assertEqual(0b011010101011111, get_format_string('Q', 0))
        self.assertEqual(0b001011010001001, get_format_string('H', 0))

    def test_format_string_arguments(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            get_format_string('M', 8)
        with self.assertRaises(InvalidArgumentError):
            get_format_string('X', 0)

    def test_version_strings(self) -> None:
        self.assertEqual(0x07C94, get_version_string(7))
        self.assertEqual(0x28C69, get_version_string(40))

    def test_format_info_round_trips_through_a_reader(self) -> None:
        for level in EC_LEVELS:
            for mask in range(8):
                matrix = ByteMatrix(21, 21)
                place_format_info(matrix, level, mask)
                self.assertEqual((level, mask), read_format_info(matrix.to_list()))


class QRMatrixTests(unittest.TestCase):
    def test_function_patterns_version_1(self) -> None:
        qr = QRMatrix(get_version(1))
        m = qr.matrix
        # Finder corners and centres
        for row, col in [(0, 0), (0, 20), (20, 0), (3, 3), (3, 17), (17, 3)]:
            self.assertEqual(1, m.get(row, col))
        # Separators
        self.assertEqual(0, m.get(7, 7))
        self.assertEqual(0, m.get(7, 13))
        # Timing patterns
        self.assertEqual([1, 0, 1, 0, 1], [m.get(6, c) for c in range(8, 13)])
        self.assertEqual([1, 0, 1, 0, 1], [m.get(r, 6) for r in range(8, 13)])
        # Dark module
        self.assertEqual(1, m.get(13, 8))
        # Format area is reserved but not yet written
        self.assertEqual(1, qr.is_function.get(8, 0))
        self.assertIsNone(m.get(8, 0))
        self.assertIsNone(m.get(10, 10))

    def test_alignment_pattern_version_2(self) -> None:
        qr = QRMatrix(get_version(2))
        self.assertEqual(1, qr.matrix.get(18, 18))
        self.assertEqual(0, qr.matrix.get(17, 18))
        self.assertEqual(1, qr.matrix.get(16, 16))
        self.assertEqual(1, qr.is_function.get(20, 20))
        self.assertEqual(0, qr.is_function.get(10, 10))

    def test_version_info_blocks(self) -> None:
        qr = QRMatrix(get_version(7))
        bits = get_version_string(7)
        size = qr.size
        for i in range(6):
            for j in range(3):
                expected = (bits >> (i * 3 + j)) & 1
                self.assertEqual(expected, qr.matrix.get(size - 11 + j, i))
                self.assertEqual(expected, qr.matrix.get(i, size - 11 + j))

    def test_data_module_count_matches_capacity(self) -> None:
        for number in range(1, 41):
            qr = QRMatrix(get_version(number))
            coordinates = qr.data_coordinates()
            self.assertEqual(num_raw_data_modules(number), len(coordinates), msg=f"version {number}")
            self.assertEqual(len(coordinates), len(set(coordinates)))

    def test_data_coordinates_start_bottom_right(self) -> None:
        qr = QRMatrix(get_version(1))
        self.assertEqual([(20, 20), (20, 19), (19, 20), (19, 19)], qr.data_coordinates()[:4])
        for row, col in qr.data_coordinates():
            self.assertFalse(qr.is_function.get(row, col))
            self.assertNotEqual(6, col)

    def test_place_data_fills_remainder_with_light(self) -> None:
        qr = QRMatrix(get_version(2))
        placed = qr.place_data([1] * (44 * 8))
        self.assertEqual(44 * 8, placed)
        values = [qr.matrix.get(r, c) for r, c in qr.data_coordinates()]
        self.assertEqual([1] * (44 * 8) + [0] * 7, values)

    def test_place_data_rejects_overflow(self) -> None:
        qr = QRMatrix(get_version(1))
        with self.assertRaises(InvalidArgumentError):
            qr.place_data([0] * 209)

    def test_mask_only_touches_data_modules(self) -> None:
        qr = QRMatrix(get_version(1))
        qr.place_data([0] * 208)
        place_format_info(qr.matrix, 'M', 0)
        for mask in range(8):
            masked = qr.apply_mask(mask)
            for r in range(qr.size):
                for c in range(qr.size):
                    if qr.is_function.get(r, c):
                        self.assertEqual(qr.matrix.get(r, c), masked.get(r, c))
                    else:
                        self.assertEqual(1 if get_data_mask_bit(mask, r, c) else 0,
                                         masked.get(r, c))
            self.assertEqual(qr.matrix, apply_mask(masked, qr.is_function, mask))

    def test_mask_patterns(self) -> None:
        self.assertTrue(get_data_mask_bit(0, 0, 0))
        self.assertFalse(get_data_mask_bit(0, 0, 1))
        self.assertTrue(get_data_mask_bit(1, 2, 5))
        self.assertTrue(get_data_mask_bit(2, 1, 3))
        self.assertFalse(get_data_mask_bit(2, 1, 4))
        with self.assertRaises(InvalidArgumentError):
            get_data_mask_bit(8, 0, 0)


class PenaltyTests(unittest.TestCase):
    def test_runs(self) -> None:
        self.assertEqual(0, _run_penalty([1, 1, 1, 1, 0]))
        self.assertEqual(3, _run_penalty([1] * 5))
        self.assertEqual(5, _run_penalty([0] * 7))
        self.assertEqual(6, _run_penalty([1] * 5 + [0] * 5))
        self.assertEqual(0, _run_penalty([1, 0] * 5))

    def test_boxes(self) -> None:
        self.assertEqual(3, _penalty_boxes([[1, 1], [1, 1]], 2))
        self.assertEqual(12, _penalty_boxes([[0] * 3 for _ in range(3)], 3))
        self.assertEqual(0, _penalty_boxes([[1, 0], [0, 1]], 2))

    def test_finder_like(self) -> None:
        self.assertEqual(40, _finder_penalty([0, 0, 0, 0, 1, 0, 1, 1, 1, 0, 1]))
        self.assertEqual(40, _finder_penalty([1, 0, 1, 1, 1, 0, 1, 0, 0, 0, 0]))
        self.assertEqual(0, _finder_penalty([1, 1, 0, 1, 0, 1, 1, 1, 0, 1, 1, 1]))

    def test_balance(self) -> None:
        self.assertEqual(0, _penalty_balance([[1, 0], [0, 1]], 2))
        self.assertEqual(100, _penalty_balance([[1] * 4 for _ in range(4)], 4))
        # 3 of 4 dark: 75% -> five steps of 5% -> 50
        self.assertEqual(50, _penalty_balance([[1, 1], [1, 0]], 2))

    def test_total_is_the_sum(self) -> None:
        matrix = [[1] * 5 for _ in range(5)]
        expected = (_penalty_boxes(matrix, 5) + _penalty_balance(matrix, 5)
                    + sum(_run_penalty(row) for row in matrix) * 2)
        self.assertEqual(expected, calculate_penalty(matrix))


if __name__ == "__main__":
    unittest.main(verbosity=2)
