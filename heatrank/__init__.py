"""heatrank - Rank the processes most likely to be heating a machine."""

__version__ = "0.1.0"

__all__ = ["__version__"]
