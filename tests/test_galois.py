import unittest

from qrbeautify.exceptions import FieldDomainError
from qrbeautify.galois import GF256


class GF256Tests(unittest.TestCase):
    def setUp(self) -> None:
        self.gf = GF256()

    def test_exp_table_follows_primitive_polynomial(self) -> None:
        self.assertEqual(1, self.gf.exp(0))
        self.assertEqual(2, self.gf.exp(1))
        self.assertEqual(128, self.gf.exp(7))
        # alpha^8 = x^4 + x^3 + x^2 + 1
        self.assertEqual(0x1d, self.gf.exp(8))
        self.assertEqual(1, self.gf.exp(255))
        self.assertEqual(self.gf.exp(3), self.gf.exp(258))

    def test_exp_is_a_permutation_of_non_zero_elements(self) -> None:
        self.assertEqual(set(range(1, 256)), {self.gf.exp(i) for i in range(255)})

    def test_log_inverts_exp(self) -> None:
        for i in range(255):
            self.assertEqual(i, self.gf.log(self.gf.exp(i)))

    def test_log_of_zero_is_a_domain_error(self) -> None:
        with self.assertRaises(FieldDomainError):
            self.gf.log(0)
        with self.assertRaises(ValueError):
            self.gf.log(0)

    def test_add_and_subtract_are_xor(self) -> None:
        self.assertEqual(83 ^ 202, self.gf.add(83, 202))
        self.assertEqual(self.gf.add(83, 202), self.gf.subtract(83, 202))

    def test_multiply(self) -> None:
        self.assertEqual(29, self.gf.multiply(2, 128))
        self.assertEqual(0, self.gf.multiply(0, 77))
        self.assertEqual(77, self.gf.multiply(1, 77))
        for a in (3, 83, 202, 255):
            for b in (7, 99, 254):
                self.assertEqual(self.gf.multiply(a, b), self.gf.multiply(b, a))

    def test_every_non_zero_element_has_an_inverse(self) -> None:
        for a in range(1, 256):
            self.assertEqual(1, self.gf.multiply(a, self.gf.inverse(a)))

    def test_divide_undoes_multiply(self) -> None:
        for a in (0, 1, 83, 202):
            for b in (1, 5, 202, 255):
                self.assertEqual(a, self.gf.divide(self.gf.multiply(a, b), b))

    def test_division_by_zero(self) -> None:
        with self.assertRaises(ZeroDivisionError):
            self.gf.divide(5, 0)
        with self.assertRaises(ZeroDivisionError):
            self.gf.inverse(0)

    def test_power(self) -> None:
        self.assertEqual(29, self.gf.power(2, 8))
        self.assertEqual(1, self.gf.power(83, 0))
        self.assertEqual(1, self.gf.power(0, 0))
        self.assertEqual(0, self.gf.power(0, 3))
        self.assertEqual(self.gf.multiply(83, self.gf.multiply(83, 83)), self.gf.power(83, 3))


if __name__ == "__main__":
    unittest.main(verbosity=2)
