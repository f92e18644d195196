"""
Exception tests.

Tests for chatplate.exceptions: the hierarchy, error codes and the
stage that raises each error.

Maps to: chatplate/exceptions/
"""
