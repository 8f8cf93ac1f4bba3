"""
Real API Integration Tests

This package contains integration tests that use real cloud API credentials.
These tests are separate from the unit tests in the main `tests/` directory.

Run these tests only when you have valid cloud credentials configured.
"""
