"""Core building blocks: simulated allocators, reference-counted handles and filesystem helpers."""

__version__ = "0.1.0"