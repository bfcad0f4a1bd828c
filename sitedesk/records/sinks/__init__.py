"""RecordSink implementations."""
