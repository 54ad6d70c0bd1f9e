"""
Lidar Velocity Evaluation System

Scores object-velocity estimators driven by sequential lidar scans of
tracked objects against recorded ground-truth speeds.
"""

__version__ = "1.0.0"
__author__ = "Vehicle Velocity Team"
