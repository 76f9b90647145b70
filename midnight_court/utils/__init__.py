"""
Utility package for Midnight Court.

Contains cancellation and timestamp helpers shared by the renderer, the
orchestrator and the refinement engine.
"""

from midnight_court.utils.cancellation import CancellationToken, check_cancelled
from midnight_court.utils.timestamps import iso_timestamp

__all__ = [
    'CancellationToken',
    'check_cancelled',
    'iso_timestamp',
]
