"""TOML-based configuration provider.

Loads ~/.config/zlaunch/config.toml (or an explicit path) on top of the
built-in defaults. A missing file means defaults; a file that exists but
cannot be parsed or validated is a ConfigLoadError, which the daemon treats
as fatal at startup and as a rejected reload afterwards.
"""

import logging
from pathlib import Path

from zlaunch.domain.config import ZlaunchConfig, validate_config
from zlaunch.domain.exceptions import ConfigLoadError
from zlaunch.shared.config_io import get_global_config_path, load_config_data

logger = logging.getLogger(__name__)


class TomlConfigProvider:
    """Configuration provider that loads from a TOML file.

    Args:
        known_themes: Callable returning the available theme names, used to
            warn about an unknown theme. None skips the check.
    """

    def __init__(self, known_themes=None) -> None:
        self._known_themes = known_themes

    def load(self, path: Path | None = None) -> ZlaunchConfig:
        """Load configuration.

        Args:
            path: Config file; defaults to the user config path.

        Returns:
            ZlaunchConfig with file values applied over defaults.

        Raises:
            ConfigLoadError: If the file exists but is invalid.
        """
        config_path = path or get_global_config_path()
        config = ZlaunchConfig.default()

        if not config_path.exists():
            logger.debug(f"No config file at {config_path}, using defaults")
            return config

        try:
            data = load_config_data(config_path)
            config = ZlaunchConfig.from_partial(config, data)
        except (OSError, ValueError) as e:
            raise ConfigLoadError(
                f"Failed to load config from {config_path}: {e}",
                hint="Fix the file or move it aside to use the defaults",
            ) from e

        logger.debug(f"Loaded config from {config_path}")

        known = set(self._known_themes()) if self._known_themes else None
        for warning in validate_config(config, known_themes=known):
            logger.warning(f"Config: {warning}")

        return config
