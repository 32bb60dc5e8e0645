"""Version information for school-commons."""

__version__ = "0.1.0"
