"""Witness - Cell assignment and constraint checking before proving."""

from witness.base import build, build_for_shape

__all__ = ["build", "build_for_shape"]
