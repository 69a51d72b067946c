"""
Test utilities for substream.

Components:
    InMemoryTransport: In-process transport recording emitted messages

Example:
    >>> from substream.testing import InMemoryTransport
    >>> transport = InMemoryTransport()
    >>> client = SubscriptionClient(transport)

Note:
    This module is intended for test code only. It should not be imported
    in production code paths.
"""

from substream.testing.transport import InMemoryTransport

__all__ = ["InMemoryTransport"]
