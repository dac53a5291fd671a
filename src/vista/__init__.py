"""Vista: natural-language search over a described and embedded image corpus."""

__version__ = "0.1.0"
