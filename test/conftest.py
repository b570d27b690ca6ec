import gc
import pytest
from rcgraph import registry


@pytest.fixture(autouse=True)
def fresh_registry():
    # The registry keeps every tracked record reachable, so it is cleared first. Strong cycles
    # leaked by earlier tests are then finalized by the collector before counters are reset.
    registry.clear()
    gc.collect()
    registry.reset_counters()
    yield
    registry.clear()
