"""HTTP API for workflow transfers."""
