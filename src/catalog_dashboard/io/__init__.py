"""I/O utilities for writing dashboard exports."""

from . import writers

__all__ = ["writers"]
