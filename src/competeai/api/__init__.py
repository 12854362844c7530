"""HTTP API for CompeteAI."""
