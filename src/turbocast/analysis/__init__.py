"""Turbulence analysis: shear, classification, layering and report correlation."""
