"""HTTP API for Citadel."""
