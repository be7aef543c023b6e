"""
Kinematic engines for the mechanical systems playground.

Modules:
- geometry: distance, angles, rotation, circle intersections
- gear_train: gear mesh motion propagation, metrics and connectivity edits
- kinematic: four-bar and slider-crank position solving
- trajectory_utils: path traces and finite-difference motion
- pulleys: closed-form pulley system metrics

Each module is imported directly (e.g. ``from mech_tools.kinematic import solve_four_bar``).
"""
