"""Core Application Layer: the use cases behind each CLI command.

Holds the media and account services, the request-shaping pipeline
(pagination, response shaping, field projection) and the command handler
that renders their results.
"""
