"""Local key-value persistence."""
