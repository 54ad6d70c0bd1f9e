"""
Sensor resolution model for a spinning multi-beam lidar.
Converts the angular spacing of sampling directions into a linear
footprint at the range of a tracked object.
"""

import math
from typing import Sequence, Tuple

import numpy as np


# 64-beam sensor spinning at 10 Hz
DEFAULT_HORIZONTAL_ANGULAR_RES = 0.18  # degrees
DEFAULT_VERTICAL_FOV = 26.8  # degrees
DEFAULT_NUM_BEAMS = 64


def planar_distance(position: Sequence[float]) -> float:
    """Distance to a position ignoring the vertical axis"""
    return math.sqrt(float(position[0]) ** 2 + float(position[1]) ** 2)


class SensorResolutionModel:
    """
    Linear resolution of the lidar at a given object position
    """

    def __init__(self,
                 horizontal_angular_res: float = DEFAULT_HORIZONTAL_ANGULAR_RES,
                 vertical_fov: float = DEFAULT_VERTICAL_FOV,
                 num_beams: int = DEFAULT_NUM_BEAMS):
        """
        Initialize the resolution model.

        Args:
            horizontal_angular_res: Angle between consecutive firings, in degrees
            vertical_fov: Vertical field of view spanned by the beams, in degrees
            num_beams: Number of laser beams
        """
        if horizontal_angular_res <= 0:
            raise ValueError("Horizontal angular resolution must be positive")
        if vertical_fov <= 0:
            raise ValueError("Vertical field of view must be positive")
        if num_beams < 2:
            raise ValueError("At least two beams are needed to define a vertical resolution")

        self.horizontal_angular_res = horizontal_angular_res
        self.vertical_fov = vertical_fov
        self.num_beams = num_beams

        # Average spacing between adjacent beams
        self.vertical_angular_res = vertical_fov / (num_beams - 1)

    @staticmethod
    def angular_to_linear(angle_degrees: float, distance: float) -> float:
        """Footprint in meters of an angular interval seen at a given range"""
        return 2 * distance * math.tan(angle_degrees / 2.0 * np.pi / 180.0)

    def get_sensor_resolution(self, centroid: Sequence[float]) -> Tuple[float, float]:
        """
        Compute the sensor resolution for an object at a given position

        Args:
            centroid: Object centroid in sensor-local coordinates

        Returns:
            (horizontal_resolution, vertical_resolution) in meters
        """
        distance = planar_distance(centroid)

        horizontal_res = self.angular_to_linear(self.horizontal_angular_res, distance)
        vertical_res = self.angular_to_linear(self.vertical_angular_res, distance)

        return horizontal_res, vertical_res


_DEFAULT_MODEL = SensorResolutionModel()


def get_sensor_resolution(centroid: Sequence[float]) -> Tuple[float, float]:
    """Sensor resolution of the default 64-beam lidar"""
    return _DEFAULT_MODEL.get_sensor_resolution(centroid)
