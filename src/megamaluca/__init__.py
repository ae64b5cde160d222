"""Mega Sena Maluca - a rigged lottery with a sarcastic AI host."""

__version__ = "0.1.0"
