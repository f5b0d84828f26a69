"""
Nose Cone Post Processor Module

Turns the toolpath event stream into machine code:
- Marlin G-code (.gcode)

Each post processor inherits from PostProcessorBase and implements
firmware-specific code generation with event hooks for customization.
"""

from .base import PostProcessorBase, PostProcessorConfig, EventHooks, PointData
from .marlin import MarlinPostProcessor

__all__ = [
    'PostProcessorBase',
    'PostProcessorConfig',
    'EventHooks',
    'PointData',
    'MarlinPostProcessor',
]
