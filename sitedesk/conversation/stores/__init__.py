"""SessionStore implementations."""

from sitedesk.conversation.stores.inmemory import InMemorySessionStore
from sitedesk.conversation.stores.postgres import PostgresSessionStore
from sitedesk.conversation.stores.redis import RedisSessionStore

__all__ = ["InMemorySessionStore", "PostgresSessionStore", "RedisSessionStore"]
