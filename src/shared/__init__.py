"""Shared infrastructure: Gemini transport, scheduling arithmetic, errors."""
