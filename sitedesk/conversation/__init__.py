"""Conversation sessions: models, store interface and backends."""
