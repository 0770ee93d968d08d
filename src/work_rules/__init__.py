"""Skill-range work priority rules for colony simulations."""

__version__ = "0.1.0"
