import pytest

from rmem.config import SimulatorConfig
from rmem.simulator import Simulator

ENV_VARS = ("RMEM_GC_TRIGGER", "RMEM_MAX_MEMORY", "RMEM_GC_GROWTH", "RMEM_LOG_LEVEL")


@pytest.fixture
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    config = SimulatorConfig.from_env()
    assert config == SimulatorConfig()
    assert config.gc_trigger == 8 * 1024 * 1024
    assert config.max_memory is None
    assert config.gc_growth == 2.0
    assert config.log_level == "WARNING"


def test_from_env(clean_env):
    clean_env.setenv("RMEM_GC_TRIGGER", "4096")
    clean_env.setenv("RMEM_MAX_MEMORY", " 8192 ")
    clean_env.setenv("RMEM_GC_GROWTH", "1.5")
    clean_env.setenv("RMEM_LOG_LEVEL", "debug")
    config = SimulatorConfig.from_env()
    assert config == SimulatorConfig(4096, 8192, 1.5, "DEBUG")


def test_blank_values_fall_back(clean_env):
    clean_env.setenv("RMEM_MAX_MEMORY", "")
    assert SimulatorConfig.from_env().max_memory is None


def test_simulator_reads_environment(clean_env):
    clean_env.setenv("RMEM_GC_TRIGGER", "1024")
    with Simulator() as sim:
        assert sim.store.gc_trigger == 1024


@pytest.mark.parametrize(
    "kwargs",
    [{"gc_trigger": 0}, {"max_memory": -1}, {"gc_growth": 0.5}],
)
def test_invalid(kwargs):
    with pytest.raises(ValueError):
        SimulatorConfig(**kwargs)


def test_malformed_number(clean_env):
    clean_env.setenv("RMEM_GC_TRIGGER", "lots")
    with pytest.raises(ValueError):
        SimulatorConfig.from_env()
