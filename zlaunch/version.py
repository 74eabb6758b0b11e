"""Version information for zlaunch.

Single source of truth for the package version, read from the installed
package metadata (pyproject.toml).
"""

from importlib.metadata import version

__version__ = version("zlaunch")
