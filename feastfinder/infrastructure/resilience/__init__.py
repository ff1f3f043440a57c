"""API Resilience Implementations.

Contains services for rate limiting inbound AI requests and retrying
outbound calls with exponential backoff.
Bounded Context: API Resilience
"""
