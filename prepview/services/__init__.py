"""HTTP collaborators, background workers and the notice log."""
