"""Roster board: tables of schools x slots, solver constraints and decoding."""

__version__ = "0.1.0"
