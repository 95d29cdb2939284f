import pytest
from unittest.mock import AsyncMock, MagicMock


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def mock_activity_sink():
    """Mock activity log sink that accepts every record"""
    sink = MagicMock()
    sink.record_transaction = AsyncMock(return_value=True)
    sink.record_status_change = AsyncMock(return_value=True)
    return sink
