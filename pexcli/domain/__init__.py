"""Domain Layer: value objects, error types, events and interfaces (ports).

Has no dependencies on the core or infrastructure layers.
"""
