"""
Services package.

Provides routing, controller resolution and the middleware pipeline.
"""

from .controller_resolver import (
    ControllerResolver,
    ModuleControllerResolver,
    RegistryControllerResolver,
)
from .pipeline import STAGES, MiddlewarePipeline
from .route_matcher import RouteMatcher

__all__ = [
    "ControllerResolver",
    "MiddlewarePipeline",
    "ModuleControllerResolver",
    "RegistryControllerResolver",
    "RouteMatcher",
    "STAGES",
]
