"""Domain Event definitions.

Represents significant occurrences during a request (attempts, retries,
fetched pages). Events are currently dispatched to the debug log.
"""
