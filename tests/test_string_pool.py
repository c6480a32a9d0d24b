import pytest

from rmem.errors import RmemError
from rmem.memory.strings import StringPool
from rmem.types.value import ValueId


def test_pool_must_be_open():
    pool = StringPool()
    assert not pool.is_open
    with pytest.raises(RmemError):
        pool.get("a")
    with pytest.raises(RmemError):
        pool.add("a", ValueId(1))


def test_add_get_discard(strings):
    strings.add("a", ValueId(3))
    assert strings.get("a") == ValueId(3)
    assert "a" in strings
    strings.discard("a")
    strings.discard("a")
    assert strings.get("a") is None
    assert len(strings) == 0


def test_close_forgets_everything():
    with StringPool() as pool:
        pool.add("a", ValueId(1))
        assert pool.is_open
    assert not pool.is_open
    assert len(pool) == 0
    assert pool.open().get("a") is None
