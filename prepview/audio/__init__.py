"""Microphone access, frequency analysis and chunked segment recording."""
