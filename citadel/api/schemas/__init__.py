"""Request and response schemas for the Citadel API."""
