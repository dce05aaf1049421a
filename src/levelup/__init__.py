"""Adaptive difficulty scoring and tier progression engine."""

__version__ = "0.1.0"
