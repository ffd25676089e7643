"""Drawfolio - Strategic draw-portfolio simulation and fiduciary oversight engine."""

__version__ = "1.0.0"
