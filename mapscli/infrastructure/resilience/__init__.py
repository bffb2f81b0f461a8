"""API Resilience Implementations.

Contains the shared rate limiter, the backoff schedule, the response
classifier and the retry coordinator that ties them together.
Bounded Context: API Resilience
"""
