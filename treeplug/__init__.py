"""treeplug - compile user-authored modules and keep a typed catalog of them."""

__version__ = "0.1.0"
