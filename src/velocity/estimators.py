"""
Interface to the external velocity estimators under evaluation.
Estimators are plugins selected by configuration; this module only
describes the contract and loads them.
"""

import importlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import numpy as np


@dataclass
class EstimatorOutput:
    """
    Result of feeding one frame to an estimator
    """
    velocity: np.ndarray  # (3,) in m/s
    alignment_probability: float

    def __post_init__(self):
        self.velocity = np.asarray(self.velocity, dtype=np.float64).reshape(3)
        self.alignment_probability = float(self.alignment_probability)


class VelocityEstimator(ABC):
    """
    Abstract base class for velocity estimators.
    An estimator keeps internal state for one object at a time; reset()
    is called before the frames of each new track are fed in.
    """

    @abstractmethod
    def reset(self):
        """Clear all state carried over from a previous track"""
        pass

    @abstractmethod
    def estimate(self,
                 points: np.ndarray,
                 timestamp: float,
                 horizontal_resolution: float,
                 vertical_resolution: float) -> EstimatorOutput:
        """
        Add the points of a new frame and estimate the object velocity

        Args:
            points: Point data of the frame
            timestamp: Frame timestamp in seconds
            horizontal_resolution: Horizontal sensor resolution in meters
            vertical_resolution: Vertical sensor resolution in meters

        Returns:
            EstimatorOutput with the velocity and alignment probability
        """
        pass


class _PluginEstimator(VelocityEstimator):
    """Adapts a plugin object exposing reset()/estimate() to the interface"""

    def __init__(self, plugin: Any):
        self.plugin = plugin

    def reset(self):
        self.plugin.reset()

    def estimate(self, points, timestamp, horizontal_resolution, vertical_resolution):
        output = self.plugin.estimate(points, timestamp, horizontal_resolution, vertical_resolution)
        return normalize_output(output)


def normalize_output(output: Union[EstimatorOutput, Tuple[Any, float]]) -> EstimatorOutput:
    """Accept either an EstimatorOutput or a (velocity, probability) pair"""
    if isinstance(output, EstimatorOutput):
        return output

    try:
        velocity, alignment_probability = output
    except (TypeError, ValueError) as e:
        raise TypeError(f"Estimator returned an unsupported result: {output!r}") from e

    return EstimatorOutput(velocity=velocity, alignment_probability=alignment_probability)


@dataclass
class EstimatorVariant:
    """
    Configuration of one estimator variant to evaluate
    """
    name: str
    factory: str  # "package.module:callable"
    params: Dict[str, Any] = field(default_factory=dict)
    description: str = ""
    enabled: bool = True

    @classmethod
    def from_config(cls, name: str, config: Dict[str, Any]) -> 'EstimatorVariant':
        """Build a variant from its configuration section"""
        if 'factory' not in config:
            raise ValueError(f"Estimator '{name}' has no factory configured")

        return cls(
            name=name,
            factory=config['factory'],
            params=dict(config.get('params', {})),
            description=config.get('description', ''),
            enabled=config.get('enabled', True)
        )


def variants_from_config(estimators_config: Dict[str, Dict[str, Any]]) -> List[EstimatorVariant]:
    """Build the list of configured variants, preserving configuration order"""
    return [EstimatorVariant.from_config(name, section)
            for name, section in estimators_config.items()]


class EstimatorFactory:
    """Factory for creating velocity estimators"""

    logger = logging.getLogger(__name__)

    @staticmethod
    def resolve_factory(factory_path: str) -> Callable[..., Any]:
        """
        Import the callable named by a "module:attribute" path

        Args:
            factory_path: Import path of the estimator factory

        Returns:
            The factory callable
        """
        module_name, sep, attribute = factory_path.partition(':')
        if not sep or not module_name or not attribute:
            raise ValueError(f"Invalid estimator factory path: {factory_path}")

        module = importlib.import_module(module_name)

        target: Any = module
        for part in attribute.split('.'):
            target = getattr(target, part)

        if not callable(target):
            raise TypeError(f"Estimator factory is not callable: {factory_path}")

        return target

    @staticmethod
    def create_estimator(variant: EstimatorVariant,
                         factory: Optional[Callable[..., Any]] = None) -> VelocityEstimator:
        """
        Create an estimator for a configured variant

        Args:
            variant: Estimator variant configuration
            factory: Factory to use instead of importing variant.factory

        Returns:
            VelocityEstimator instance
        """
        if factory is None:
            try:
                factory = EstimatorFactory.resolve_factory(variant.factory)
            except (ImportError, AttributeError) as e:
                raise ImportError(
                    f"Cannot load estimator '{variant.name}' from {variant.factory}: {e}"
                ) from e

        estimator = factory(**variant.params)

        if isinstance(estimator, VelocityEstimator):
            return estimator

        for method in ('reset', 'estimate'):
            if not callable(getattr(estimator, method, None)):
                raise TypeError(
                    f"Estimator '{variant.name}' does not implement {method}()"
                )

        EstimatorFactory.logger.debug(f"Wrapping plugin estimator for variant '{variant.name}'")
        return _PluginEstimator(estimator)
