"""
custody.version — package version string.

Bump on tagged releases (semver: major.minor.patch).
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
