"""JustId: client-side identity resolution."""

__version__ = "0.1.0"
