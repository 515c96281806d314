"""Domain Events related to API calls and resilience.

Examples include events for when calls are retried, fail, succeed, or when
a page of a paginated listing has been merged.
"""

from dataclasses import dataclass, field
import time
from typing import Optional

# Base Event Class
@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

# --- Specific API Events ---

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when an HTTP request is about to be sent."""
    endpoint: str
    attempt_number: int
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when an HTTP request returns a 2xx status."""
    endpoint: str
    status_code: int
    latency_ms: float
    request_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when a request fails definitively (after retries)."""
    endpoint: str
    error_type: str
    error_message: str
    request_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed request."""
    endpoint: str
    attempt_number: int
    delay_seconds: float
    reason: str # 'transport', 'http 429', 'http 503', ...
    timestamp: float = field(default_factory=time.time)

@dataclass
class PageFetched(DomainEvent):
    """Event triggered when a page has been merged into an aggregate."""
    page_number: int
    items_collected: int
    has_next: bool
    timestamp: float = field(default_factory=time.time)
