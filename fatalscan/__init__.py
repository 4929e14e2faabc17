"""Static fatal-error scanner for WordPress plugins."""

__version__ = "0.3.0"
