import math
from fractions import Fraction
from numbers import Rational
from typing import Union

Number = Union[int, float, Fraction, str]


def to_fraction(value: Number) -> Fraction:
    """
    Convert a numeric value into an exact ``Fraction``.

    Integers and rationals convert exactly. Floats are read through their
    decimal representation, so ``0.003`` becomes ``3/1000`` rather than the
    nearest binary fraction.

    Parameters
    ----------
    value : int, float, Fraction or str
        The value to convert.

    Returns
    -------
    Fraction
        The exact rational value.

    Raises
    ------
    ValueError
        If the value is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError(f"Expected a number, got {value!r}")
    if isinstance(value, Rational):
        return Fraction(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Expected a finite number, got {value!r}")
        return Fraction(repr(value))
    if isinstance(value, str):
        return Fraction(value)
    raise ValueError(f"Expected a number, got {value!r}")


def fee_ratio_from(numerator: int, denominator: int) -> Fraction:
    """Build a fee ratio from the program's fee numerator and denominator."""
    if denominator <= 0:
        raise ValueError(f"Fee denominator must be positive, got {denominator}")
    if numerator < 0 or numerator >= denominator:
        raise ValueError(
            f"Fee must lie in [0, 1), got {numerator}/{denominator}"
        )
    return Fraction(numerator, denominator)


def ceil_fraction(value: Fraction) -> int:
    """Smallest integer greater than or equal to ``value``."""
    return -((-value.numerator) // value.denominator)


def floor_fraction(value: Fraction) -> int:
    """Largest integer less than or equal to ``value``."""
    return value.numerator // value.denominator


def format_ratio(value: Fraction) -> str:
    """Render a fraction as ``"num/den"`` for lossless storage."""
    return f"{value.numerator}/{value.denominator}"
