"""
matplotlib_config.py - Configure matplotlib for headless plotting.
"""

import os

import matplotlib


def configure_matplotlib_for_backend():
    """Switch to Agg on headless hosts and set plot defaults. Call before importing pyplot."""
    if os.environ.get('DISPLAY') is None and os.name != 'nt':
        matplotlib.use('Agg')

    matplotlib.rcParams['figure.dpi'] = 100
    matplotlib.rcParams['savefig.dpi'] = 150
    matplotlib.rcParams['figure.figsize'] = [10, 8]
    matplotlib.rcParams['font.size'] = 10
