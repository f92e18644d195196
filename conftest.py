"""
Global pytest configuration for chatplate tests.

Registers the custom markers used across the test suite.
"""


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
