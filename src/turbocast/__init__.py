"""turbocast: shear-based turbulence forecasting and route report correlation."""

__version__ = "0.1.0"
