"""Durable records written when a flow completes."""

from sitedesk.records.models import Record, RecordType
from sitedesk.records.sink import RecordSink, RecordSinkError
from sitedesk.records.sinks.inmemory import InMemoryRecordSink
from sitedesk.records.sinks.postgres import PostgresRecordSink

__all__ = [
    "InMemoryRecordSink",
    "PostgresRecordSink",
    "Record",
    "RecordSink",
    "RecordSinkError",
    "RecordType",
]
