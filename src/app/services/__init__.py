from .unit_of_work import UnitOfWork
from .activity_log import ActivityLogSink

__all__ = [
    "UnitOfWork",
    "ActivityLogSink",
]
