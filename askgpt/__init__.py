"""AskGPT - a modal terminal chat client for OpenAI-compatible endpoints."""

__version__ = "0.3.0"
