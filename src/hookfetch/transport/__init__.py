"""
Transport layer for hookfetch.
"""

from hookfetch.transport.http import HttpxTransport

__all__ = [
    "HttpxTransport",
]
