import logging
import re
from collections.abc import Mapping
from numbers import Integral
from typing import Union

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_VARIABLE = "x"

# split before a sign that starts a new term, but not inside "1e-5" or "x^-1"
_TERM_SPLIT = re.compile(r"(?<=[^eE^*/+-])(?=[+-])")


class PolynomialError(Exception):
    """Base class for polynomial errors."""


class DivisionByZeroPolynomialError(PolynomialError, ZeroDivisionError):
    """Raised when dividing by the zero polynomial."""


class PolynomialParseError(PolynomialError, ValueError):
    """Raised when a string cannot be read as a polynomial."""


def _is_scalar(value):
    return not isinstance(value, Polynomial) and not hasattr(value, "__iter__")


def _binary_operator(method):
    """Wrap a named method as an operator that defers on unsupported operands."""

    def operator(self, other):
        if self._coerce(other) is NotImplemented:
            return NotImplemented
        return method(self, other)

    return operator


class Polynomial:
    """
    Sparse univariate polynomial over a duck-typed scalar.

    Terms are stored as an exponent -> coefficient dict kept in ascending
    exponent order, with no zero coefficients. The scalar ``zero`` is what
    a missing coefficient reads as; results inherit it from the left operand.
    """

    # let numpy hand ``ndarray op Polynomial`` to the reflected operators
    __array_ufunc__ = None

    def __init__(self, coefficients: Union[list, tuple, Mapping, np.ndarray] = (), zero=None):
        if zero is None:
            zero = coefficients.zero if isinstance(coefficients, Polynomial) else 0
        self.zero = zero
        if isinstance(coefficients, np.ndarray):
            if coefficients.ndim != 1:
                raise ValueError(f"expected a 1-D coefficient array, got shape {coefficients.shape}")
            coefficients = coefficients.tolist()
        if isinstance(coefficients, str):
            raise TypeError("use Polynomial.from_string() to parse text")
        if isinstance(coefficients, Polynomial):
            coefficients = dict(coefficients._terms)
        if isinstance(coefficients, Mapping):
            terms = {}
            for exponent, coefficient in coefficients.items():
                if not isinstance(exponent, Integral) or exponent < 0:
                    raise ValueError(f"exponents must be non-negative integers, got {exponent!r}")
                terms[int(exponent)] = coefficient
        elif _is_scalar(coefficients):
            terms = {0: coefficients}
        else:
            terms = dict(enumerate(coefficients))
        self._terms = terms
        self._normalize()

    @classmethod
    def from_coefficients(cls, coefficients, zero=0) -> 'Polynomial':
        if not isinstance(coefficients, np.ndarray):
            coefficients = list(coefficients)
        return cls(coefficients, zero=zero)

    @classmethod
    def from_scalar(cls, c, zero=0) -> 'Polynomial':
        return cls({0: c}, zero=zero)

    @classmethod
    def from_iterable(cls, iterable, zero=0) -> 'Polynomial':
        return cls(iter(iterable), zero=zero)

    @classmethod
    def from_terms(cls, terms: Mapping, zero=0) -> 'Polynomial':
        return cls(dict(terms), zero=zero)

    @classmethod
    def x(cls, zero=0, one=1) -> 'Polynomial':
        return cls({1: one}, zero=zero)

    @classmethod
    def from_string(cls, s: str, scalar=int, var: str = DEFAULT_VARIABLE) -> 'Polynomial':
        """
        Read text such as ``-x^3+2*x+1`` or ``3*x^2 - x + 1``.

        *scalar* converts coefficient text (``int``, ``float``,
        ``fractions.Fraction``, ...). Repeated exponents are summed.
        """
        text = s.replace(" ", "")
        if not text:
            raise PolynomialParseError("cannot parse an empty string as a polynomial")
        try:
            zero = scalar("0")
        except (TypeError, ValueError) as exc:
            raise PolynomialParseError(f"{scalar!r} cannot build a zero coefficient") from exc

        terms = {}
        for term in _TERM_SPLIT.split(text):
            if not term or term in "+-":
                raise PolynomialParseError(f"dangling sign in {s!r}")
            if var in term:
                coeff, _, power = term.partition(var)
                if power == "":
                    power = "1"
                elif power.startswith("^"):
                    power = power[1:]
                else:
                    raise PolynomialParseError(f"unexpected text after {var!r} in term {term!r}")
                if coeff.endswith("*"):
                    coeff = coeff[:-1]
                    if coeff in ("", "+", "-"):
                        raise PolynomialParseError(f"missing coefficient before '*' in term {term!r}")
                if coeff in ("", "+"):
                    coeff = "1"
                elif coeff == "-":
                    coeff = "-1"
            else:
                coeff, power = term, "0"

            try:
                power = int(power)
                coeff = scalar(coeff)
            except (TypeError, ValueError) as exc:
                raise PolynomialParseError(f"cannot parse term {term!r} of {s!r}") from exc
            if power < 0:
                raise PolynomialParseError(f"negative exponent in term {term!r}")
            terms[power] = terms.get(power, zero) + coeff

        return cls(terms, zero=zero)

    def _normalize(self):
        self._terms = {k: v for k, v in sorted(self._terms.items()) if v != self.zero}

    def _new(self, terms):
        poly = type(self).__new__(type(self))
        poly.zero = self.zero
        poly._terms = terms
        poly._normalize()
        return poly

    def _coerce(self, other):
        if isinstance(other, Polynomial):
            return other
        if _is_scalar(other):
            return self.from_scalar(other, zero=self.zero)
        return NotImplemented

    def copy(self) -> 'Polynomial':
        return self._new(dict(self._terms))

    def degree(self):
        """Highest exponent with a nonzero coefficient, or None for the zero polynomial."""
        if not self._terms:
            return None
        return next(reversed(self._terms))

    def coefficient_at(self, exponent):
        if not isinstance(exponent, Integral):
            raise TypeError(f"exponent must be an integer, got {type(exponent).__name__}")
        return self._terms.get(int(exponent), self.zero)

    __getitem__ = coefficient_at

    def leading_coefficient(self):
        degree = self.degree()
        if degree is None:
            return self.zero
        return self._terms[degree]

    def is_zero(self):
        return not self._terms

    def terms(self):
        """(exponent, coefficient) pairs in ascending exponent order."""
        return iter(list(self._terms.items()))

    __iter__ = terms

    def __len__(self):
        return len(self._terms)

    def __bool__(self):
        return bool(self._terms)

    def to_numpy(self, dtype=None) -> np.ndarray:
        degree = self.degree()
        if degree is None:
            return np.array([], dtype=dtype)
        return np.array([self[i] for i in range(degree + 1)], dtype=dtype)

    def __eq__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return self._terms == other._terms

    # in-place operators mutate the receiver, so instances cannot be hashed
    __hash__ = None

    def _operand(self, other):
        operand = self._coerce(other)
        if operand is NotImplemented:
            raise TypeError(f"unsupported operand type for Polynomial: {type(other).__name__!r}")
        return operand

    def _accumulate(self, other, subtract=False):
        for exponent, coefficient in list(other._terms.items()):
            current = self._terms.get(exponent, self.zero)
            self._terms[exponent] = current - coefficient if subtract else current + coefficient
        self._normalize()
        return self

    def __iadd__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return self._accumulate(other)

    def __isub__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return self._accumulate(other, subtract=True)

    def __imul__(self, other):
        if self._coerce(other) is NotImplemented:
            return NotImplemented
        self._terms = self.mul(other)._terms
        return self

    def add(self, other) -> 'Polynomial':
        return self.copy()._accumulate(self._operand(other))

    def sub(self, other) -> 'Polynomial':
        return self.copy()._accumulate(self._operand(other), subtract=True)

    def mul(self, other) -> 'Polynomial':
        other = self._operand(other)
        terms = {}
        for i, a in self._terms.items():
            for j, b in other._terms.items():
                terms[i + j] = terms.get(i + j, self.zero) + a * b
        return self._new(terms)

    __add__ = _binary_operator(add)
    __sub__ = _binary_operator(sub)
    __mul__ = _binary_operator(mul)

    def __radd__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return other.add(self)

    def __rsub__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return other.sub(self)

    def __rmul__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return other.mul(self)

    def __neg__(self):
        return self._new({k: self.zero - v for k, v in self._terms.items()})

    def __pos__(self):
        return self.copy()

    def __truediv__(self, other):
        if not _is_scalar(other):
            return NotImplemented
        return self._new({k: v / other for k, v in self._terms.items()})

    def __pow__(self, exponent):
        if not isinstance(exponent, Integral):
            return NotImplemented
        if exponent < 0:
            raise ValueError("polynomials can only be raised to non-negative integer powers")
        result = self.from_scalar(self.zero + 1, zero=self.zero)
        for _ in range(exponent):
            result *= self
        return result

    def compose(self, other) -> 'Polynomial':
        """Return self(other(x))."""
        other = self._operand(other)
        composition = self._new({})
        for exponent, coefficient in self._terms.items():
            term = self.from_scalar(coefficient, zero=self.zero)
            for _ in range(exponent):
                term *= other
            composition += term
        return composition

    __and__ = _binary_operator(compose)

    def evaluate(self, value):
        if isinstance(value, (list, tuple)):
            value = np.asarray(value)
        result = self.zero
        degree = self.degree()
        if degree is None:
            return result
        # Horner's method
        for exponent in range(degree, -1, -1):
            result = self[exponent] + result * value
        return result

    __call__ = evaluate

    def divmod(self, other):
        """
        Long division. Returns ``(quotient, remainder)`` with
        ``deg(remainder) < deg(other)``.

        Quotient terms come from the scalar ``/`` of leading coefficients,
        so the coefficients should form a field (``Fraction``, ``float``,
        a finite field type).
        """
        other = self._operand(other)
        divisor_degree = other.degree()
        if divisor_degree is None:
            raise DivisionByZeroPolynomialError("polynomial division by the zero polynomial")
        divisor_leading = other._terms[divisor_degree]

        quotient = {}
        remaining = self.copy()
        degree = remaining.degree()
        while degree is not None and degree >= divisor_degree:
            t = remaining._terms[degree] / divisor_leading
            shift = degree - divisor_degree
            quotient[shift] = quotient.get(shift, self.zero) + t
            remaining -= other * self._new({shift: t})
            # the leading term cancels exactly in theory; drop any residue
            remaining._terms.pop(degree, None)
            logger.debug("division step: quotient term %r*x^%d, remainder degree %r",
                         t, shift, remaining.degree())
            degree = remaining.degree()

        return self._new(quotient), remaining

    def divide(self, other) -> 'Polynomial':
        return self.divmod(other)[0]

    def remainder(self, other) -> 'Polynomial':
        return self.divmod(other)[1]

    __divmod__ = _binary_operator(divmod)
    __floordiv__ = _binary_operator(divide)
    __mod__ = _binary_operator(remainder)

    def __rfloordiv__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return other.divide(self)

    def __rmod__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return other.remainder(self)

    def __rdivmod__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return other.divmod(self)

    def monic(self) -> 'Polynomial':
        if self.is_zero():
            raise DivisionByZeroPolynomialError("the zero polynomial has no monic form")
        return self / self.leading_coefficient()

    def gcd(self, other) -> 'Polynomial':
        """
        Monic greatest common divisor by the Euclidean algorithm.

        Coprime inputs give the constant 1 and ``gcd(a, 0)`` is
        ``a.monic()``. Two zero polynomials have no gcd.
        """
        other = self._operand(other)
        if not self and not other:
            raise DivisionByZeroPolynomialError("gcd of two zero polynomials is undefined")
        first, second = self.copy(), other.copy()
        if not first or (second and second.degree() > first.degree()):
            first, second = second, first
        while second:
            first, second = second, first % second
            logger.debug("euclid step: degrees %r, %r", first.degree(), second.degree())
        return first.monic()

    def format(self, var: str = DEFAULT_VARIABLE) -> str:
        degree = self.degree()
        if degree is None:
            return "0"
        parts = []
        for exponent, coeff in reversed(self._terms.items()):
            if exponent == 0:
                text = str(coeff)
            else:
                power = var if exponent == 1 else f"{var}^{exponent}"
                if coeff == 1:
                    text = power
                elif coeff == -1:
                    text = "-" + power
                else:
                    text = f"{coeff}*{power}"
            if exponent != degree and coeff > self.zero:
                text = "+" + text
            parts.append(text)
        return "".join(parts)

    def write(self, stream, var: str = DEFAULT_VARIABLE):
        stream.write(self.format(var))

    def __str__(self):
        return self.format()

    def __repr__(self):
        terms = ", ".join(f"{k!r}: {v!r}" for k, v in self._terms.items())
        if type(self.zero) is int and self.zero == 0:
            return f"Polynomial({{{terms}}})"
        return f"Polynomial({{{terms}}}, zero={self.zero!r})"


def gcd(a, b) -> Polynomial:
    if not isinstance(a, Polynomial):
        if not _is_scalar(a):
            raise TypeError(f"unsupported operand type for gcd: {type(a).__name__!r}")
        a = Polynomial.from_scalar(a, zero=getattr(b, "zero", 0))
    return a.gcd(b)
