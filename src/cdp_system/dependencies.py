"""FastAPI dependency: the process-wide CdpSystem.

Built lazily from settings on first use. Tests override get_system with a
system built on a ManualClock.
"""

from config.settings import settings
from src.cdp_system.system import CdpSystem, build_system

_system: CdpSystem | None = None


def get_system() -> CdpSystem:
    global _system
    if _system is None:
        _system = build_system(settings)
    return _system
