"""Gallery viewer backend: folder scanning with a persistent thumbnail cache."""

__version__ = "0.1.0"
