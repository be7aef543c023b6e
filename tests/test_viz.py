"""
Plots render headless and land at the requested path.
"""
from __future__ import annotations

import matplotlib
import numpy as np

from configs.presets import load_gear_preset
from configs.presets import load_linkage_preset
from mech_tools.gear_train import propagate_gear_motion
from mech_tools.kinematic import sweep_linkage
from viz_tools.viz import plot_gear_train
from viz_tools.viz import plot_linkage_sweep
from viz_tools.viz import PlotStyleConfig


def test_backend_is_non_interactive_when_headless(monkeypatch):
    from configs.matplotlib_config import configure_matplotlib_for_backend

    monkeypatch.delenv('DISPLAY', raising=False)
    configure_matplotlib_for_backend()
    assert matplotlib.get_backend().lower() == 'agg'


def test_plot_gear_train_writes_file(tmp_path):
    gears = propagate_gear_motion(load_gear_preset('compound'), 'g0', 60, 10)
    out = plot_gear_train(gears, title='compound', out_path=tmp_path / 'gears.png')
    assert out == tmp_path / 'gears.png'
    assert out.exists()


def test_plot_linkage_sweep_into_directory(tmp_path):
    joints, links = load_linkage_preset('fourbar')
    solutions = sweep_linkage(joints, links, np.linspace(0, 2 * np.pi, 40, endpoint=False))
    style = PlotStyleConfig(show_legend=False, dpi=72)
    out = plot_linkage_sweep(links, solutions, title='fourbar', out_path=tmp_path, style=style)
    assert out == tmp_path / 'fourbar.png'
    assert out.exists()
