"""Clean up OCR'd book excerpts with OpenAI-compatible language model endpoints."""

__version__ = "0.1.0"
