from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Optional


# Defaults
_DEFAULT_GC_TRIGGER = 8 * 1024 * 1024
_DEFAULT_GC_GROWTH = 2.0
_DEFAULT_LOG_LEVEL = 'WARNING'


def int_from_env(var: str, default: Optional[int]) -> Optional[int]:
    raw = os.environ.get(var)
    if raw is None or not raw.strip():
        return default
    return int(raw.strip())


def float_from_env(var: str, default: float) -> float:
    raw = os.environ.get(var)
    if raw is None or not raw.strip():
        return default
    return float(raw.strip())


@dataclass
class SimulatorConfig:
    """Collector thresholds and logging level for a Simulator.

    gc_trigger is the soft ceiling: an allocation that would push the bytes
    in use past it runs a collection first. max_memory is the hard limit; an
    allocation that still does not fit after collecting fails. None means no
    hard limit.
    """
    gc_trigger: int = _DEFAULT_GC_TRIGGER
    max_memory: Optional[int] = None
    gc_growth: float = _DEFAULT_GC_GROWTH
    log_level: str = _DEFAULT_LOG_LEVEL

    def __post_init__(self):
        if self.gc_trigger <= 0:
            raise ValueError("gc_trigger must be positive")
        if self.max_memory is not None and self.max_memory <= 0:
            raise ValueError("max_memory must be positive")
        if self.gc_growth < 1.0:
            raise ValueError("gc_growth must be at least 1.0")

    @classmethod
    def from_env(cls) -> SimulatorConfig:
        return cls(
            gc_trigger=int_from_env('RMEM_GC_TRIGGER', _DEFAULT_GC_TRIGGER),
            max_memory=int_from_env('RMEM_MAX_MEMORY', None),
            gc_growth=float_from_env('RMEM_GC_GROWTH', _DEFAULT_GC_GROWTH),
            log_level=os.environ.get('RMEM_LOG_LEVEL', _DEFAULT_LOG_LEVEL).upper(),
        )
