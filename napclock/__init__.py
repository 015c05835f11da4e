"""
Napclock - persistent single-slot sleep timer.

Arms one delayed stop (fixed duration or end of content), keeps it across
process restarts, and reconciles the stored record with the wake scheduler
on startup.
"""

__version__ = "1.0.0"
