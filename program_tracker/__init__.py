"""Program enrollment and day-state progression engine."""

__version__ = "0.1.0"
