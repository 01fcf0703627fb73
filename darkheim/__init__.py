"""darkheim - typed service container with automatic dependency resolution."""

__version__ = "0.1.0"
