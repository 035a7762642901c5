"""
Tests for payments app.

This package contains test modules for:
- test_states.py: Status ranks and the same-rank policy
- test_transitions.py: Conditional updates and bulk expiry
- test_ingestor.py / test_webhooks.py: Webhook processing and endpoint
- test_sweeper.py: Expiration sweeps and sweeper endpoints
- test_concurrency.py: Racing drivers (PostgreSQL only)

Usage:
    pytest payments/tests/
    pytest payments/tests/test_webhooks.py
    pytest -m "not e2e"
"""
