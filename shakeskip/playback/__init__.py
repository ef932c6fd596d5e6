"""
Playback effects for ShakeSkip.
"""

from .skip_simulation import SkipSimulationController, SkipState

__all__ = ['SkipSimulationController', 'SkipState']
