"""
Shared utilities for demo scripts.

This module provides formatted output helpers used by the demos.
"""
from __future__ import annotations

import numpy as np

from configs.mech_models import Gear
from mech_tools.schemas import LinkageSolution


def print_section(title: str, width: int = 70):
    """Print a section header."""
    print('\n' + '=' * width)
    print(f'  {title}')
    print('=' * width)


def print_gears(gears: list[Gear]):
    """One line per gear: speed, torque and spin sense."""
    for gear in gears:
        sense = 'CW' if gear.direction == 1 else 'CCW'
        role = ' (driver)' if gear.is_driver else ''
        print(
            f'  {gear.id}{role}: {gear.teeth}T  {gear.rpm:8.2f} RPM  '
            f'{gear.torque:7.3f} Nm  {sense}',
        )


def print_sweep_summary(solutions: list[LinkageSolution]):
    """Locked-tick count and transmission angle range of a sweep."""
    n_locked = sum(1 for s in solutions if s.locked)
    angles = [s.transmission_angle for s in solutions if s.transmission_angle is not None]
    print(f'  Ticks: {len(solutions)}, locked: {n_locked}')
    if angles:
        print(
            f'  Transmission angle: {np.degrees(min(angles)):.1f} deg'
            f' .. {np.degrees(max(angles)):.1f} deg',
        )
