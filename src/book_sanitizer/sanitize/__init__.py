"""Sanitization pipeline: chunk, dispatch to endpoints, write YAML output."""
