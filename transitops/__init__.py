"""transitops - inventory backend for ground-transportation installations."""

__version__ = "0.1.0"
