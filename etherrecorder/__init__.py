"""Framed TCP command client, levelled logger and networking helpers."""

__version__ = "0.1.0"