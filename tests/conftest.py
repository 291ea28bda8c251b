import pytest
from projectgen.core.broadcast import BroadcastHub
from projectgen.core.jobs import JobRegistry
from projectgen.db.gateway import InMemoryGateway


@pytest.fixture
def gateway():
    return InMemoryGateway()


@pytest.fixture
def hub():
    return BroadcastHub(max_queue_size=0)


@pytest.fixture
def registry():
    return JobRegistry()
