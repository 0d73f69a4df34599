"""Activity chart analytics and export pipeline."""

__version__ = "0.1.0"
