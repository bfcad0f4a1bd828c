"""Conversation engine: routing, delegation, locking and the event loop entrypoint."""
