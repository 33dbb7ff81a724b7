"""Contrast limited adaptive histogram equalisation for greyscale images."""

__version__ = "0.1.0"
__all__ = ["cpu", "image"]