from __future__ import annotations

from itertools import cycle
from pathlib import Path

from configs.matplotlib_config import configure_matplotlib_for_backend
# Must run before pyplot is imported
configure_matplotlib_for_backend()

import matplotlib
import matplotlib.pyplot as plt
import networkx as nx
import numpy as np
import seaborn as sns
from pydantic import BaseModel
from pydantic import Field

from configs.mech_models import Gear
from configs.mech_models import Link
from mech_tools.gear_train import build_mesh_graph
from mech_tools.gear_train import get_pitch_radius
from mech_tools.schemas import LinkageSolution


class PlotStyleConfig(BaseModel):
    """Colors, sizes and output options shared by the gear and linkage plots."""

    # Colors; the colormap shades sweep samples by crank phase
    colormap: str = Field(default='Spectral', description='Matplotlib colormap name')
    color_palette: str = Field(default='tab10', description='Seaborn color palette')
    fixed_node_color: str = Field(default='#1f77b4', description='Color for fixed joints')
    free_node_color: str = Field(default='#ff7f0e', description='Color for free joints')
    driver_color: str = Field(default='#4CAF50', description='Color for the driver gear/link')
    cw_color: str = Field(default='#2196F3', description='Clockwise gears')
    ccw_color: str = Field(default='#E53935', description='Counterclockwise gears')
    idle_color: str = Field(default='#B0BEC5', description='Gears not reached by the driver')

    # Line and marker properties
    linewidth: float = Field(default=2.0, ge=0.1, le=10.0, description='Line width')
    markersize: float = Field(default=15.0, ge=1.0, le=50.0, description='Marker size')
    alpha: float = Field(default=0.9, ge=0.0, le=1.0, description='Transparency')

    # Display options
    show_grid: bool = Field(default=True, description='Show grid')
    show_legend: bool = Field(default=True, description='Show legend')
    equal_aspect: bool = Field(default=True, description='Use equal aspect ratio')

    # Output properties
    dpi: int = Field(default=150, ge=72, le=600, description='DPI for saved figures')
    bbox_inches: str = Field(default='tight', description='Bounding box for saved figures')


DEFAULT_STYLE = PlotStyleConfig()


def _setup_plot_style(title: str, style: PlotStyleConfig = DEFAULT_STYLE) -> None:
    plt.xlabel('x (px)')
    plt.ylabel('y (px)')
    plt.title(title)
    if style.show_grid:
        plt.grid(True, zorder=-1)
    if style.equal_aspect:
        plt.axis('equal')
    # canvas coordinates: y grows downward
    plt.gca().invert_yaxis()


def _handle_output(
    title: str, out_path: str | Path | None = None,
    style: PlotStyleConfig = DEFAULT_STYLE,
) -> Path | None:
    """Save if out_path is given (a directory gets '<title>.png'), otherwise show."""
    if out_path is None:
        plt.show()
        return None

    out_path = Path(out_path)
    full_path = out_path / f'{title}.png' if out_path.is_dir() else out_path
    full_path.parent.mkdir(parents=True, exist_ok=True)

    plt.savefig(full_path, dpi=style.dpi, bbox_inches=style.bbox_inches)
    plt.close()
    return full_path


def _gear_color(gear: Gear, style: PlotStyleConfig) -> str:
    if gear.is_driver:
        return style.driver_color
    if gear.rpm == 0:
        return style.idle_color
    return style.cw_color if gear.direction == 1 else style.ccw_color


def plot_gear_train(
    gears: list[Gear],
    title: str = 'Gear Train',
    out_path: str | Path | None = None,
    style: PlotStyleConfig = DEFAULT_STYLE,
    show_info: bool = True,
) -> Path | None:
    """
    Plot gears as pitch circles, mesh edges between centres, and rpm/torque labels.

    Colors follow the playground convention: driver green, clockwise blue,
    counterclockwise red, idle grey.
    """
    _, ax = plt.subplots(figsize=(10, 8))

    graph = build_mesh_graph(gears)
    positions = {g.id: g.position.as_tuple() for g in gears}
    nx.draw_networkx_edges(graph, positions, ax=ax, style='dashed', alpha=0.5)

    for gear in gears:
        radius = get_pitch_radius(gear.teeth)
        color = _gear_color(gear, style)
        ax.add_patch(plt.Circle(
            gear.position.as_tuple(), radius,
            facecolor=color, edgecolor='#333', alpha=style.alpha * 0.6, linewidth=style.linewidth,
        ))
        # spoke shows the current angle
        ax.plot(
            [gear.position.x, gear.position.x + radius * np.cos(gear.angle)],
            [gear.position.y, gear.position.y + radius * np.sin(gear.angle)],
            color='#333', linewidth=style.linewidth,
        )
        if show_info:
            ax.annotate(
                f'{gear.id}: {abs(gear.rpm):.1f} RPM\n{gear.torque:.1f} Nm',
                xy=(gear.position.x, gear.position.y + radius + 20),
                ha='center', va='top', fontsize=8,
            )

    ax.autoscale_view()
    _setup_plot_style(title, style)
    return _handle_output(title, out_path, style)


def plot_linkage_sweep(
    links: list[Link],
    solutions: list[LinkageSolution],
    title: str = 'Linkage Sweep',
    out_path: str | Path | None = None,
    style: PlotStyleConfig = DEFAULT_STYLE,
    show_paths: bool = True,
    show_first_pose: bool = True,
) -> Path | None:
    """
    Plot the traced joint paths of a crank sweep, colored by crank phase.

    Args:
        links: Links of the mechanism (drawn for the first valid pose)
        solutions: Output of kinematic.sweep_linkage
        title: Plot title
        out_path: Output path for saving (None to display)
        style: Style configuration
        show_paths: Draw every free joint's path
        show_first_pose: Draw the bars of the first non-locked pose
    """
    plt.figure(figsize=(12, 10))

    valid = [s for s in solutions if not s.locked]
    phase_colors = matplotlib.colormaps[style.colormap]

    if show_paths and valid:
        free_ids = [j.id for j in valid[0].joints if not j.is_fixed]
        for joint_id in free_ids:
            xy = np.array([s.joint(joint_id).position.as_tuple() for s in valid])
            phases = np.mod([s.crank_angle for s in valid], 2 * np.pi) / (2 * np.pi)
            plt.scatter(xy[:, 0], xy[:, 1], c=phase_colors(phases), s=style.markersize, alpha=style.alpha)

    if show_first_pose and valid:
        first = valid[0]
        link_color_cycle = cycle(sns.color_palette(style.color_palette))
        for link in links:
            p1 = first.joint(link.joint1_id).position
            p2 = first.joint(link.joint2_id).position
            color = style.driver_color if link.is_driver else next(link_color_cycle)
            plt.plot([p1.x, p2.x], [p1.y, p2.y], color=color, linewidth=style.linewidth * 2, label=link.id)
        for joint in first.joints:
            color = style.fixed_node_color if joint.is_fixed else style.free_node_color
            plt.scatter(joint.position.x, joint.position.y, color=color, s=style.markersize * 4, zorder=10)

    if style.show_legend and plt.gca().get_legend_handles_labels()[0]:
        plt.legend()

    _setup_plot_style(title, style)
    return _handle_output(title, out_path, style)
