"""
Composition configuration.

Settings that change how objects are composed (traits-mode conflict
warnings, strict write rejection) are carried in a context variable
rather than a process-wide flag, so a caller scopes them with
`composition(...)` and they unwind when the block exits.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, replace
from typing import Iterator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HarmonyConfig:
    # Warn when a mixed-in module member is already resolvable on the host.
    traits_mode: bool = True
    # Escalate refused writes and deletes to WriteRejected.
    strict: bool = False


_CONFIG: ContextVar[HarmonyConfig] = ContextVar("harmony_config", default=HarmonyConfig())


def current_config() -> HarmonyConfig:
    return _CONFIG.get()


@contextmanager
def composition(**overrides) -> Iterator[HarmonyConfig]:
    """
    Installs a config derived from the current one for the duration of the block.

    Example:
        with composition(traits_mode=False):
            mix(module, host)   # no conflict warnings
    """
    config = replace(current_config(), **overrides)
    token = _CONFIG.set(config)
    logger.debug("composition entered: %r", config)
    try:
        yield config
    finally:
        _CONFIG.reset(token)


__all__ = [
    "HarmonyConfig",
    "composition",
    "current_config",
]
