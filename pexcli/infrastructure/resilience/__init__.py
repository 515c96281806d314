"""API Resilience Implementations.

Contains the backoff calculator and the retrying request executor that
wraps every HTTP call.
Bounded Context: API Resilience
"""
