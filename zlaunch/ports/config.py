"""Configuration provider port.

Defines the interface for loading application configuration.
"""

from pathlib import Path
from typing import Protocol

from zlaunch.domain.config import ZlaunchConfig


class ConfigProvider(Protocol):
    """Protocol for loading and providing configuration."""

    def load(self, path: Path | None = None) -> ZlaunchConfig:
        """Load configuration from a TOML file.

        Args:
            path: Config file; None means the default user config path.

        Returns:
            ZlaunchConfig with loaded values, or defaults if the file is missing.

        Raises:
            ConfigLoadError: If the file exists but cannot be parsed or validated.
        """
        ...
