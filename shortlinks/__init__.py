"""shortlinks: short-code allocation and redirect tracking service."""

__version__ = "1.0.0"
