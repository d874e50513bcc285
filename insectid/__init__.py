"""Entomological identification records backed by the GBIF taxonomy."""

__all__ = [
    "config",
    "export",
    "search",
    "state",
    "storage",
    "submission",
    "__version__",
]

__version__ = "0.1.0"
