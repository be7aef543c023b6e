#!/usr/bin/env python3
"""
Playground Demo - Run every preset through the engines, headless.

WHAT THIS DEMO DOES:
====================
1. Gear trains: propagates the driver's speed/torque through each gear preset,
   prints per-gear state and the driver-to-output metrics, advances one second
   of rotation and plots the train.
2. Linkages: sweeps each linkage preset through one crank revolution, reports
   Grashof class, dead points and transmission angles, and plots the paths.
3. Pulleys: prints mechanical advantage and required effort per preset.

RUN THIS DEMO:
==============
    python -m demo.playground_demo

Output saved to: user/plots/
"""
from __future__ import annotations

import logging

import numpy as np

from configs.appconfig import AppConfig
from configs.appconfig import TICK_ANGLE_STEP
from configs.presets import GEAR_PRESETS
from configs.presets import LINKAGE_PRESETS
from configs.presets import load_gear_connections
from configs.presets import load_gear_preset
from configs.presets import load_linkage_preset
from configs.presets import load_pulley_preset
from configs.presets import PULLEY_PRESETS
from demo.helpers import print_gears
from demo.helpers import print_section
from demo.helpers import print_sweep_summary
from mech_tools.gear_train import advance_gear_angles
from mech_tools.gear_train import calculate_gear_system_metrics
from mech_tools.gear_train import find_driver
from mech_tools.gear_train import propagate_gear_motion
from mech_tools.kinematic import classify_grashof
from mech_tools.kinematic import has_dead_point
from mech_tools.kinematic import identify_four_bar
from mech_tools.kinematic import sweep_linkage
from mech_tools.pulleys import calculate_pulley_system_metrics
from mech_tools.trajectory_utils import PathTrace
from mech_tools.trajectory_utils import path_length
from viz_tools.viz import plot_gear_train
from viz_tools.viz import plot_linkage_sweep

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

INPUT_RPM = 60.0
INPUT_TORQUE = 10.0
TICKS_PER_SECOND = 60
SAVE_PLOTS = True
OUTPUT_DIR = AppConfig.get_plot_dir()


def run_gears():
    print_section('GEAR TRAINS')
    for key, preset in GEAR_PRESETS.items():
        gears = load_gear_preset(key)
        driver = find_driver(gears)
        gears = propagate_gear_motion(gears, driver, INPUT_RPM, INPUT_TORQUE, connections=load_gear_connections(key))

        print(f'\n{preset.name} - {preset.description}')
        print_gears(gears)

        metrics = calculate_gear_system_metrics(INPUT_RPM, INPUT_TORQUE, gears, driver.id, gears[-1].id)
        print(
            f'  ratio {metrics.gear_ratio:.3f}, output {metrics.output_rpm:.1f} RPM / '
            f'{metrics.output_torque:.2f} Nm, efficiency {metrics.efficiency:.3f}',
        )

        for _ in range(TICKS_PER_SECOND):
            gears = advance_gear_angles(gears, 1 / TICKS_PER_SECOND)

        if SAVE_PLOTS:
            path = plot_gear_train(gears, title=preset.name, out_path=OUTPUT_DIR / f'gears_{key}.png')
            logger.info(f'Wrote {path}')


def run_linkages():
    print_section('LINKAGES')
    angles = np.arange(0, 2 * np.pi, TICK_ANGLE_STEP)
    for key, preset in LINKAGE_PRESETS.items():
        joints, links = load_linkage_preset(key)
        print(f'\n{preset.name} - {preset.description}')

        if sum(j.is_fixed for j in joints) == 2:
            mechanism = identify_four_bar(joints, links)
            print(f'  Grashof class: {classify_grashof(*mechanism.lengths)}')
            print(f'  Dead points: {has_dead_point(mechanism)}')

        solutions = sweep_linkage(joints, links, angles)
        print_sweep_summary(solutions)

        trace = PathTrace(joint_id='coupler')
        trace.extend(s.coupler_position for s in solutions if not s.locked)
        print(f'  Traced {len(trace)} samples, path length {path_length(trace.points):.1f}')

        if SAVE_PLOTS:
            path = plot_linkage_sweep(links, solutions, title=preset.name, out_path=OUTPUT_DIR / f'linkage_{key}.png')
            logger.info(f'Wrote {path}')


def run_pulleys():
    print_section('PULLEYS')
    for key, preset in PULLEY_PRESETS.items():
        pulleys, load = load_pulley_preset(key)
        metrics = calculate_pulley_system_metrics(pulleys, load)
        print(
            f'  {preset.name:28s} ideal MA {metrics.ideal_ma:.0f}, actual MA {metrics.actual_ma:.2f}, '
            f'effort {metrics.required_effort:.1f} N for {load.weight:.0f} N',
        )


def main():
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')
    run_gears()
    run_linkages()
    run_pulleys()


if __name__ == '__main__':
    main()
