"""
elec_core: núcleo de cálculo de instalaciones eléctricas.

- Alumbrado por el método de cavidades zonales (RCL/RCT/RCP, CU interpolado)
- Alumbrado por el método del flujo total (índice del local K)
- Conductores: corriente, caída de tensión, calibre AWG, tubería e interruptor

Funciones puras: sin base de datos, sin UI, sin logging.
"""

from .conductors import ConductorInput, calculate_conductor
from .illumination import (
    CavityInput,
    TotalFluxInput,
    calculate_cavity_illumination,
    calculate_total_flux_illumination,
)
from .interpolation import interpolate

__all__ = [
    "CavityInput",
    "ConductorInput",
    "TotalFluxInput",
    "calculate_cavity_illumination",
    "calculate_conductor",
    "calculate_total_flux_illumination",
    "interpolate",
]
