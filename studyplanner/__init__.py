"""
studyplanner - Plan study blocks around fixed class events.
"""

__version__ = "0.1.0"
