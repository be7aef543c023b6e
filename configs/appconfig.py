# Application Configuration
# Centralized configuration for all engine constants and output paths
from pathlib import Path


class AppConfig:
    """Centralized application configuration"""

    USER_DIR = Path(__file__).parent.parent / "user"

    # Gear configuration
    GEAR_MODULE = 8  # size of each tooth in pixels
    FRICTION_COEFFICIENT = 0.95  # efficiency per meshed gear pair
    MESH_TOLERANCE = 0.05  # relative slack on centre distance for auto-meshing

    # Pulley configuration
    PULLEY_FRICTION = 0.9  # efficiency per pulley
    GRAVITY = 9.81  # m/s^2

    # Linkage playback
    TRACE_LENGTH = 200  # samples kept by a path trace
    TICK_ANGLE_STEP = 0.02  # crank advance per tick at speed 1.0
    N_STEPS = 120  # samples per revolution for coupler curves

    @classmethod
    def get_plot_dir(cls):
        return cls.USER_DIR / "plots"


# For backward compatibility and easy imports
USER_DIR = AppConfig.USER_DIR
GEAR_MODULE = AppConfig.GEAR_MODULE
FRICTION_COEFFICIENT = AppConfig.FRICTION_COEFFICIENT
MESH_TOLERANCE = AppConfig.MESH_TOLERANCE
PULLEY_FRICTION = AppConfig.PULLEY_FRICTION
GRAVITY = AppConfig.GRAVITY
TRACE_LENGTH = AppConfig.TRACE_LENGTH
TICK_ANGLE_STEP = AppConfig.TICK_ANGLE_STEP
N_STEPS = AppConfig.N_STEPS
