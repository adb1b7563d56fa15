import random
import threading
import unittest
from typing import List

import reedsolo

from qrbeautify.exceptions import InvalidArgumentError
from qrbeautify.galois import GF256
from qrbeautify.polynomial import Polynomial
from qrbeautify.reed_solomon import ReedSolomonEncoder
from qrbeautify.version import EC_LEVELS, get_version

# Version 1-M, "HELLO WORLD"
HELLO_WORLD_DATA = [32, 91, 11, 120, 209, 114, 220, 77, 67, 64, 236, 17, 236, 17, 236, 17]
HELLO_WORLD_EC = [196, 35, 39, 119, 235, 215, 231, 226, 93, 23]

# Version 1-M, "01234567"
NUMERIC_DATA = [16, 32, 12, 86, 97, 128, 236, 17, 236, 17, 236, 17, 236, 17, 236, 17]
NUMERIC_EC = [165, 36, 212, 193, 237, 54, 199, 135, 44, 85]


def all_block_shapes():
    shapes = set()
    for number in range(1, 41):
        version = get_version(number)
        for level in EC_LEVELS:
            shapes.update(version.get_ec_blocks(level).block_sizes())
    return sorted(shapes)


class ReedSolomonEncoderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.gf = GF256()
        self.rs = ReedSolomonEncoder(self.gf)
        self.rng = random.Random(0x5EED)

    def assert_valid_codeword(self, codeword: List[int], ec_bytes: int) -> None:
        poly = Polynomial(self.gf, codeword)
        for i in range(ec_bytes):
            self.assertEqual(0, poly.evaluate(self.gf.exp(i)), msg=f"root alpha^{i}")

    def random_bytes(self, n: int) -> List[int]:
        return [self.rng.randrange(256) for _ in range(n)]

    def test_generator_polynomial_for_ten_ec_codewords(self) -> None:
        exponents = [0, 251, 67, 46, 61, 118, 70, 64, 94, 32, 45]
        generator = self.rs.build_generator(10)
        self.assertEqual([self.gf.exp(e) for e in exponents], generator.coeffs)

    def test_generators_are_cached(self) -> None:
        g7 = self.rs.build_generator(7)
        self.assertIs(g7, self.rs.build_generator(7))
        self.assertEqual(7, g7.degree)
        self.assertEqual(30, self.rs.build_generator(30).degree)
        self.assertIs(g7, self.rs.build_generator(7))

    def test_concurrent_cache_growth(self) -> None:
        degrees = [30, 7, 68, 13, 22, 68, 2, 50]
        reference = ReedSolomonEncoder(GF256())
        for _ in range(20):
            rs = ReedSolomonEncoder(self.gf)
            barrier = threading.Barrier(len(degrees))
            results = {}

            def grow(index: int, degree: int) -> None:
                barrier.wait()
                results[index] = rs.build_generator(degree)

            threads = [threading.Thread(target=grow, args=(i, d)) for i, d in enumerate(degrees)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

            self.assertEqual(max(degrees) + 1, len(rs._generator_cache))
            for d, generator in enumerate(rs._generator_cache):
                self.assertEqual(d, generator.degree)
                self.assertEqual(reference.build_generator(d), generator, msg=f"degree {d}")
            for i, d in enumerate(degrees):
                self.assertIs(rs._generator_cache[d], results[i])

    def test_known_vectors(self) -> None:
        self.assertEqual(HELLO_WORLD_EC, self.rs.generate_ec_bytes(HELLO_WORLD_DATA, 10))
        self.assertEqual(NUMERIC_EC, self.rs.generate_ec_bytes(NUMERIC_DATA, 10))

    def test_encode_in_place(self) -> None:
        to_encode = HELLO_WORLD_DATA + [0] * 10
        self.rs.encode(to_encode, 10)
        self.assertEqual(HELLO_WORLD_DATA + HELLO_WORLD_EC, to_encode)

    def test_generate_ec_bytes_leaves_input_alone(self) -> None:
        data = list(HELLO_WORLD_DATA)
        self.rs.generate_ec_bytes(data, 10)
        self.assertEqual(HELLO_WORLD_DATA, data)

    def test_encode_rejects_bad_lengths(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            self.rs.encode([1, 2, 3], 0)
        with self.assertRaises(InvalidArgumentError):
            self.rs.encode([0, 0, 0], 3)

    def test_codewords_vanish_at_generator_roots(self) -> None:
        for data_len, ec_len in [(19, 7), (15, 18), (46, 28), (118, 30)]:
            data = self.random_bytes(data_len)
            self.assert_valid_codeword(data + self.rs.generate_ec_bytes(data, ec_len), ec_len)

    def test_reference_decoder_accepts_and_corrects(self) -> None:
        for data_len, ec_len in [(16, 10), (43, 24), (117, 30)]:
            data = self.random_bytes(data_len)
            codeword = bytearray(data + self.rs.generate_ec_bytes(data, ec_len))
            codec = reedsolo.RSCodec(ec_len, fcr=0, prim=0x11d, generator=2)

            message, _, errata = codec.decode(codeword)
            self.assertEqual(bytearray(data), message)
            self.assertEqual(0, len(errata))

            damaged = bytearray(codeword)
            for pos in self.rng.sample(range(len(damaged)), ec_len // 3):
                damaged[pos] ^= 0xFF
            message, _, _ = codec.decode(damaged)
            self.assertEqual(bytearray(data), message)


class EncodeErasuresTests(unittest.TestCase):
    def setUp(self) -> None:
        self.gf = GF256()
        self.rs = ReedSolomonEncoder(self.gf)
        self.rng = random.Random(0xC0DE)

    def assert_valid_codeword(self, codeword: List[int], ec_bytes: int) -> None:
        poly = Polynomial(self.gf, codeword)
        for i in range(ec_bytes):
            self.assertEqual(0, poly.evaluate(self.gf.exp(i)))

    def random_flags(self, n: int, free: int) -> List[bool]:
        free_positions = set(self.rng.sample(range(n), free))
        return [i not in free_positions for i in range(n)]

    def test_trailing_free_positions_match_systematic_encode(self) -> None:
        codeword = HELLO_WORLD_DATA + [0] * 10
        self.rs.encode_erasures(codeword, [True] * 16 + [False] * 10, 16)
        self.assertEqual(HELLO_WORLD_DATA + HELLO_WORLD_EC, codeword)

    def test_fixed_values_survive_and_result_is_a_codeword(self) -> None:
        for n, k in [(26, 19), (33, 15), (153, 123), (45, 16)]:
            codeword = [self.rng.randrange(256) for _ in range(n)]
            original = list(codeword)
            fixed = self.random_flags(n, n - k)
            self.rs.encode_erasures(codeword, fixed, k)
            for i in range(n):
                if fixed[i]:
                    self.assertEqual(original[i], codeword[i])
            self.assert_valid_codeword(codeword, n - k)

    def test_disjoint_erasure_set_reproduces_the_codeword(self) -> None:
        n, k = 44, 22
        codeword = [self.rng.randrange(256) for _ in range(n)]
        first_free = set(self.rng.sample(range(n), n - k))
        self.rs.encode_erasures(codeword, [i not in first_free for i in range(n)], k)
        solved = list(codeword)

        remaining = [i for i in range(n) if i not in first_free]
        second_free = set(self.rng.sample(remaining, n - k))
        scrambled = [self.rng.randrange(256) if i in second_free else v
                     for i, v in enumerate(solved)]
        self.rs.encode_erasures(scrambled, [i not in second_free for i in range(n)], k)
        self.assertEqual(solved, scrambled)

    def test_no_known_bytes_gives_the_zero_codeword(self) -> None:
        codeword = [9] * 12
        self.rs.encode_erasures(codeword, [False] * 12, 0)
        self.assertEqual([0] * 12, codeword)

    def test_every_block_shape_is_solvable(self) -> None:
        for data_len, ec_len in all_block_shapes():
            n = data_len + ec_len
            for fixed in ([False] * ec_len + [True] * data_len,
                          self.random_flags(n, ec_len)):
                codeword = [self.rng.randrange(256) for _ in range(n)]
                self.rs.encode_erasures(codeword, fixed, data_len)
                self.assert_valid_codeword(codeword, ec_len)

    def test_argument_validation(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            self.rs.encode_erasures([0] * 5, [True] * 4, 4)
        with self.assertRaises(InvalidArgumentError):
            self.rs.encode_erasures([0] * 5, [True, True, False, False, False], 3)
        with self.assertRaises(InvalidArgumentError):
            self.rs.encode_erasures([0] * 5, [True] * 5, 5)
        with self.assertRaises(InvalidArgumentError):
            self.rs.encode_erasures([0] * 256, [True] * 250 + [False] * 6, 250)


if __name__ == "__main__":
    unittest.main(verbosity=2)
