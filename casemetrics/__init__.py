"""Case-surveillance metrics: burden, trajectory and composite activity levels."""

__version__ = "0.1.0"
