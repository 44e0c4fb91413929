from __future__ import annotations

from dataclasses import dataclass

from .numeric import ieee_div


def interpolate(x1: float, y1: float, x2: float, y2: float, x: float) -> float:
    """
    Interpolación lineal entre (x1, y1) y (x2, y2).

    Reglas:
    - y = y1 + (x - x1) * (y2 - y1) / (x2 - x1)
    - x1 == x2 -> y1 (caso degenerado, sin división entre cero)
    - sin recorte: x fuera de [x1, x2] extrapola
    - NaN/Infinity se propagan, nunca se lanza excepción
    """
    if x2 == x1:
        return float(y1)
    return float(y1) + ieee_div((float(x) - float(x1)) * (float(y2) - float(y1)), float(x2) - float(x1))


@dataclass(frozen=True)
class InterpolationPair:
    """Two manufacturer table points bracketing the room index."""

    x1: float
    y1: float
    x2: float
    y2: float

    def at(self, x: float) -> float:
        return interpolate(self.x1, self.y1, self.x2, self.y2, x)
