import pytest

from rmem.config import SimulatorConfig
from rmem.memory.store import ValueStore
from rmem.memory.strings import StringPool
from rmem.simulator import Simulator

# Every test gets its own string pool and store, so interning and identities
# never leak between tests. Configs are built explicitly rather than from the
# process environment for the same reason.


@pytest.fixture
def strings():
    pool = StringPool().open()
    yield pool
    pool.close()


@pytest.fixture
def store(strings):
    s = ValueStore(strings, SimulatorConfig())
    yield s
    s.close()


@pytest.fixture
def sim():
    s = Simulator(SimulatorConfig())
    yield s
    s.close()
