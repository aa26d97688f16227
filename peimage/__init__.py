from .formats import PEImage, PEFormatError

VERSION = "0.1.0"

__all__ = ["PEImage", "PEFormatError", "VERSION"]
