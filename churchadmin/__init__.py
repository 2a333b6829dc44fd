"""Church Admin: administration backend for a local church."""

__version__ = "0.1.0"
