"""Form submission dispatch and session lifecycle control for client apps."""

__version__ = "0.1.0"
