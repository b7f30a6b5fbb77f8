"""Trip settlement and driver compensation engine."""

__version__ = "0.1.0"
