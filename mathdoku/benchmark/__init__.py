"""Calibration module for measuring generated difficulty."""

from .calibration import Calibrator, CalibrationSample, calibrate_one
from .visualizer import CalibrationVisualizer

__all__ = ["Calibrator", "CalibrationSample", "calibrate_one", "CalibrationVisualizer"]
