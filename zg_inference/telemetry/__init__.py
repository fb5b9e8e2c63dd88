from .log_sink import LogEntry, LogSink

__all__ = ["LogEntry", "LogSink"]
