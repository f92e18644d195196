"""
Logging tests.

Maps to: chatplate/_logging.py
"""
