"""HTTP adapter for the upstream API."""
