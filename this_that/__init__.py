"""This=That: find neighborhoods in one region that feel like a place you know."""

__version__ = "1.0.0"
