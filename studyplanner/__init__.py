"""
studyplanner - Place study lessons into free calendar time.
"""

__version__ = "0.1.0"
