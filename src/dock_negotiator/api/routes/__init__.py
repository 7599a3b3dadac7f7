"""Route group exports."""

from . import health, hos, negotiation, tools

__all__ = ["health", "hos", "negotiation", "tools"]
