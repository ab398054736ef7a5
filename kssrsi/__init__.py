"""External control of KSS robot controllers over RSI, with optional EKI program management."""

__version__ = "0.1.0"