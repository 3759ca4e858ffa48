"""Message types, session stores and filesystem and git tools for LLM agents."""

__version__ = "0.1.0"