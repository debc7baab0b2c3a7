"""HTTP API for auto-apply submissions, platforms and the session vault."""
