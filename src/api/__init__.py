"""PrepView collaborator HTTP service."""
