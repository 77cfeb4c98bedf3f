"""Outbound rate limiting toolkit."""

from .throttle import OutboundThrottle, TokenBucketThrottle  # noqa: F401

__all__ = ["OutboundThrottle", "TokenBucketThrottle"]
