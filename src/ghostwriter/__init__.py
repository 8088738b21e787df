"""Edit resolution and application engine for AI-assisted document editing."""

__version__ = "0.3.0"

__all__ = ["__version__"]
