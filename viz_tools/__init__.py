"""
Visualization tools for gear trains and linkage mechanisms.

Modules:
- viz: static plots of gear trains and crank sweeps
"""
from __future__ import annotations

from viz_tools.viz import DEFAULT_STYLE
from viz_tools.viz import plot_gear_train
from viz_tools.viz import plot_linkage_sweep
from viz_tools.viz import PlotStyleConfig

__all__ = [
    'plot_gear_train',
    'plot_linkage_sweep',
    'PlotStyleConfig',
    'DEFAULT_STYLE',
]
