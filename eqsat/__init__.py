"""Syntax trees, normal forms, type constraints and function tables for an equality-saturation rule language."""

__version__ = "0.1.0"