"""
ob-test

Mock HTTP server simulating backend latency, external calls, file I/O and
HTTP errors, for testing observability tooling.
"""

__version__ = '1.0.0'
