"""Domain models: value objects and the output envelope."""
