from .unit_of_work import SqlAlchemyUnitOfWork
from .activity_log import (
    LoggingActivityLogSink,
    WebhookActivityLogSink,
    CompositeActivityLogSink,
    create_activity_log_sink,
)

__all__ = [
    "SqlAlchemyUnitOfWork",
    "LoggingActivityLogSink",
    "WebhookActivityLogSink",
    "CompositeActivityLogSink",
    "create_activity_log_sink",
]
