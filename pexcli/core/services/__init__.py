"""Application services.

Response shaping, field projection and pagination are pure or depend only
on an injected fetch function; MediaService and AccountService orchestrate
them for the CLI commands.
"""
