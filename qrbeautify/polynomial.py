"""
Polynomials with coefficients in GF(256).

Coefficients are stored highest degree first: coeffs[0] is the coefficient
of x^degree and coeffs[-1] the constant term. Polynomials are values, every
operation returns a new instance.
"""

from typing import List, Sequence, Tuple

from .exceptions import InvalidArgumentError
from .galois import GF256


class Polynomial:
    """
    Polynomial with coefficients in GF(256).

    The leading coefficient is non-zero unless the polynomial is the zero
    polynomial, which is stored as [0].
    """

    def __init__(self, gf: GF256, coefficients: Sequence[int]):
        """Initialize polynomial with coefficients, trimming leading zeros."""
        if not coefficients:
            raise InvalidArgumentError("Polynomial needs at least one coefficient")
        self.gf = gf
        coeffs = list(coefficients)
        first_non_zero = 0
        while first_non_zero < len(coeffs) - 1 and coeffs[first_non_zero] == 0:
            first_non_zero += 1
        self.coeffs: List[int] = coeffs[first_non_zero:]

    @classmethod
    def zero(cls, gf: GF256) -> 'Polynomial':
        return cls(gf, [0])

    @classmethod
    def monomial(cls, gf: GF256, degree: int, coefficient: int) -> 'Polynomial':
        """Build coefficient * x^degree."""
        if degree < 0:
            raise InvalidArgumentError(f"Negative monomial degree: {degree}")
        if coefficient == 0:
            return cls.zero(gf)
        return cls(gf, [coefficient] + [0] * degree)

    @property
    def degree(self) -> int:
        """Return the degree of the polynomial."""
        return len(self.coeffs) - 1

    def is_zero(self) -> bool:
        return self.coeffs[0] == 0

    def coefficient(self, degree: int) -> int:
        """Coefficient of x^degree; zero above the leading term."""
        if degree < 0:
            raise InvalidArgumentError(f"Negative degree: {degree}")
        if degree > self.degree:
            return 0
        return self.coeffs[len(self.coeffs) - 1 - degree]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Polynomial):
            return NotImplemented
        return self.coeffs == other.coeffs

    def __repr__(self) -> str:
        terms = []
        for degree in range(self.degree, -1, -1):
            c = self.coefficient(degree)
            if c == 0:
                continue
            if degree == 0:
                terms.append(f"{c}")
            elif degree == 1:
                terms.append(f"{c}x")
            else:
                terms.append(f"{c}x^{degree}")
        return " + ".join(terms) if terms else "0"

    def evaluate(self, x: int) -> int:
        """Evaluate polynomial at x using Horner's method."""
        if x == 0:
            return self.coefficient(0)
        result = 0
        for coeff in self.coeffs:
            result = self.gf.add(self.gf.multiply(result, x), coeff)
        return result

    def add(self, other: 'Polynomial') -> 'Polynomial':
        """Add two polynomials (subtraction is identical in GF(256))."""
        if self.is_zero():
            return other
        if other.is_zero():
            return self
        smaller, larger = self.coeffs, other.coeffs
        if len(smaller) > len(larger):
            smaller, larger = larger, smaller
        length_diff = len(larger) - len(smaller)
        result = larger[:length_diff]
        for i in range(length_diff, len(larger)):
            result.append(self.gf.add(smaller[i - length_diff], larger[i]))
        return Polynomial(self.gf, result)

    def multiply(self, other: 'Polynomial') -> 'Polynomial':
        """Multiply two polynomials."""
        if self.is_zero() or other.is_zero():
            return Polynomial.zero(self.gf)
        result = [0] * (len(self.coeffs) + len(other.coeffs) - 1)
        for i, a in enumerate(self.coeffs):
            for j, b in enumerate(other.coeffs):
                result[i + j] = self.gf.add(result[i + j], self.gf.multiply(a, b))
        return Polynomial(self.gf, result)

    def multiply_by_scalar(self, scalar: int) -> 'Polynomial':
        """Multiply polynomial by a scalar."""
        if scalar == 0:
            return Polynomial.zero(self.gf)
        if scalar == 1:
            return self
        return Polynomial(self.gf, [self.gf.multiply(c, scalar) for c in self.coeffs])

    def multiply_by_monomial(self, degree: int, coefficient: int) -> 'Polynomial':
        """Multiply by coefficient * x^degree."""
        if degree < 0:
            raise InvalidArgumentError(f"Negative monomial degree: {degree}")
        if coefficient == 0:
            return Polynomial.zero(self.gf)
        result = [self.gf.multiply(c, coefficient) for c in self.coeffs]
        return Polynomial(self.gf, result + [0] * degree)

    def divide(self, other: 'Polynomial') -> Tuple['Polynomial', 'Polynomial']:
        """
        Synthetic division, returning (quotient, remainder).

        Each step cancels the remainder's leading term with a multiple of the
        divisor whose coefficient is lead(remainder) / lead(divisor).
        """
        if other.is_zero():
            raise ZeroDivisionError("Divide by zero polynomial")

        quotient = Polynomial.zero(self.gf)
        remainder = self
        denominator_leading_term = other.coefficient(other.degree)

        while remainder.degree >= other.degree and not remainder.is_zero():
            degree_difference = remainder.degree - other.degree
            scale = self.gf.divide(remainder.coefficient(remainder.degree),
                                   denominator_leading_term)
            term = other.multiply_by_monomial(degree_difference, scale)
            quotient = quotient.add(Polynomial.monomial(self.gf, degree_difference, scale))
            remainder = remainder.add(term)

        return quotient, remainder
