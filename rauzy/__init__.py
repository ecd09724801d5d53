"""Rauzy Workbench -- Rauzy fractal lattice points and Liu's theorem path analysis."""

__version__ = "0.1.0"
