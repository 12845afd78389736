"""Municipal services assistant: conversational complaint intake backend."""

__version__ = "0.3.0"
