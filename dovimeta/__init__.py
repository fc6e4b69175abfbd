"""Dolby Vision RPU extension metadata blocks: parsing, validation and writing."""

__version__ = "0.1.0"