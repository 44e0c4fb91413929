from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal


def ieee_div(a: float, b: float) -> float:
    """a / b con semántica IEEE-754: x/0 -> ±inf, 0/0 -> NaN (sin ZeroDivisionError)."""
    a = float(a)
    b = float(b)
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        # sign of a zero divisor matters: 1 / -0.0 == -inf
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def ieee_sqrt(x: float) -> float:
    x = float(x)
    if math.isnan(x) or x < 0.0:
        return math.nan
    return math.sqrt(x)


def ceil_or_nan(x: float) -> float | int:
    if not math.isfinite(x):
        return x
    return math.ceil(x)


def round_half_up(x: float) -> float | int:
    # Math.round semantics: ties go toward +inf (2.5 -> 3, -2.5 -> -2)
    if not math.isfinite(x):
        return x
    return math.floor(x + 0.5)


def _non_finite_label(x: float) -> str:
    if math.isnan(x):
        return "NaN"
    return "Infinity" if x > 0 else "-Infinity"


def to_fixed(x: float, places: int = 2) -> str:
    """Fixed-decimal display string, half-up on the exact binary value."""
    if not math.isfinite(x):
        return _non_finite_label(x)
    quantum = Decimal(1).scaleb(-places)
    return f"{Decimal(x).quantize(quantum, rounding=ROUND_HALF_UP):f}"


def to_exponential(x: float, digits: int = 2) -> str:
    if not math.isfinite(x):
        return _non_finite_label(x)
    if x == 0:
        return f"{Decimal(0).quantize(Decimal(1).scaleb(-digits)):f}e+0"
    d = Decimal(x)
    exp = d.adjusted()
    quantum = Decimal(1).scaleb(-digits)
    mantissa = d.scaleb(-exp).quantize(quantum, rounding=ROUND_HALF_UP)
    if abs(mantissa) >= 10:
        exp += 1
        mantissa = d.scaleb(-exp).quantize(quantum, rounding=ROUND_HALF_UP)
    sign = "+" if exp >= 0 else "-"
    return f"{mantissa:f}e{sign}{abs(exp)}"


def three_sig_figs(x: float) -> str:
    """
    Tres cifras significativas para mostrar.

    - 0 -> "0"
    - orden decimal > 5 o < -3 -> notación exponencial ("1.23e+6")
    - si no, redondeo a 3 cifras con los decimales necesarios
    """
    if x == 0:
        return "0"
    if not math.isfinite(x):
        return _non_finite_label(x)
    magnitude = math.floor(math.log10(abs(x)))
    if magnitude > 5 or magnitude < -3:
        return to_exponential(x, 2)
    factor = 10.0 ** (2 - magnitude)
    rounded = math.floor(x * factor + 0.5) / factor
    return to_fixed(rounded, max(0, 2 - magnitude))
