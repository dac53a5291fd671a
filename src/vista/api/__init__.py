"""HTTP API for Vista."""
