"""OpenAI-compatible chat completions server that forwards requests to Scira."""

__version__ = "0.1.0"