"""Slot availability and booking engine for the tutoring platform."""

__version__ = "0.1.0"
