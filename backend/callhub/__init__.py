"""
CallHub Realtime Backend

Presence, signaling relay and call orchestration for the chat application.
"""

__version__ = "1.0.0"
