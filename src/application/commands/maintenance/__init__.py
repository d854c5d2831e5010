from src.application.commands.maintenance.cleanup_old_data import (
    CleanupOldDataCommand,
    CleanupOldDataHandler,
    CleanupReport,
)
from src.application.commands.maintenance.sweep_state import (
    SweepInProcessStateCommand,
    SweepInProcessStateHandler,
    SweepReport,
    run_periodic_sweep,
)

__all__ = [
    "CleanupOldDataCommand",
    "CleanupOldDataHandler",
    "CleanupReport",
    "SweepInProcessStateCommand",
    "SweepInProcessStateHandler",
    "SweepReport",
    "run_periodic_sweep",
]
