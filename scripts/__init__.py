"""
Scripts for CareTrack
Utility scripts for seeding and background notification processing
"""

from .seed_data import seed_all
from .process_notifications import process_once

__all__ = [
    "seed_all",
    "process_once",
]
