"""HTTP routers of the notebook service."""
