"""HTTP API for Clan Hub (FastAPI)."""
