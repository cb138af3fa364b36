# Copyright 2023 Lawrence Livermore National Security, LLC
# See the top-level LICENSE file for details.
#
# SPDX-License-Identifier: MIT
import os
import platform
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional, Union

import tomlkit

from realparent.follower import DEFAULT_MAX_SYMLINK_HOPS


class ConfigManager:
    """A configuration manager for handling settings stored in a configuration file. The
    configuration manager internally caches a copy of the loaded configuration file, so
    external changes won't affect the setting value while a program is running.

    Attributes:
        app_name (str): The name of the application. (Default: 'realparent')
        config_dir (Optional[Path]): The directory where the configuration file is stored.
        config (tomlkit.document): The configuration document loaded by tomlkit. Preserves formatting and comments.
        config_file_path (Path): The path to the configuration file.
    """

    _initialized: bool = False
    _instances: Dict[str, "ConfigManager"] = {}
    _lock = Lock()

    def __new__(
        cls, app_name: str = "realparent", config_dir: Optional[Union[str, Path]] = None
    ) -> "ConfigManager":
        """Manage singleton configuration manager for each unique application name.

        Args:
            app_name (str): The name of the application. (Default: 'realparent')
            config_dir (Optional[Union[str, Path]]): The directory where the application configuration is stored.

        Returns:
            ConfigManager: The singleton instance of the configuration manager for the given application name.
        """
        with cls._lock:
            if app_name not in cls._instances:
                instance = super(ConfigManager, cls).__new__(cls)
                instance._initialized = False
                cls._instances[app_name] = instance
            return cls._instances[app_name]

    def __init__(
        self, app_name: str = "realparent", config_dir: Optional[Union[str, Path]] = None
    ) -> None:
        if self._initialized:
            return
        self._initialized = True

        self.app_name = app_name
        self.config_dir = Path(config_dir) / app_name if config_dir else None
        self.config = tomlkit.document()
        self.config_file_path = self._get_config_file_path()
        self._load_config()

    def _get_config_file_path(self) -> Path:
        if self.config_dir:
            config_file = Path(self.config_dir) / "config.toml"
        else:
            if platform.system() == "Windows":
                config_dir = Path(os.getenv("APPDATA", str(Path("~\\AppData\\Roaming"))))
            else:
                config_dir = Path(os.getenv("XDG_CONFIG_HOME", str(Path("~/.config"))))
            config_file = config_dir / self.app_name / "config.toml"
        return config_file.expanduser()

    def _load_config(self) -> None:
        if self.config_file_path.exists():
            with open(self.config_file_path, "r") as configfile:
                self.config = tomlkit.parse(configfile.read())

    def get(self, section: str, option: str, fallback: Optional[Any] = None) -> Any:
        """Gets a configuration value.

        Args:
            section (str): The section within the configuration file.
            option (str): The option within the section.
            fallback (Optional[Any]): The fallback value if the option is not found.

        Returns:
            Any: The configuration value or the fallback value.
        """
        return self.config.get(section, {}).get(option, fallback)

    def set(self, section: str, option: str, value: Any) -> None:
        """Sets a configuration value and writes the file back, keeping its comments."""
        if section not in self.config:
            self.config[section] = tomlkit.table()
        self.config[section][option] = value
        self._save_config()

    def _save_config(self) -> None:
        if not self.config_file_path.exists():
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_file_path, "w") as configfile:
            configfile.write(tomlkit.dumps(self.config))

    def __getitem__(self, key: str) -> Any:
        """Enables dictionary-like syntax for accessing configuration settings.
        NOTE: Remember to check that the value returned is not 'None' before
        trying to access nested keys.
        """
        if key not in self.config:
            return None
        return self.config[key]

    @classmethod
    def delete_instance(cls, app_name: str) -> None:
        """Deletes the singleton instance for the given application name."""
        with cls._lock:
            if app_name in cls._instances:
                del cls._instances[app_name]


@dataclass(frozen=True)
class ResolverSettings:
    strict: bool = False
    max_symlink_hops: int = DEFAULT_MAX_SYMLINK_HOPS


def get_resolver_settings(config_manager: Optional[ConfigManager] = None) -> ResolverSettings:
    """Read the ``[resolver]`` section, falling back to defaults for unset options.

    Raises:
        ValueError: if an option is set to a value of the wrong type or range.
    """
    config_manager = config_manager or ConfigManager()
    strict = config_manager.get("resolver", "strict", False)
    if not isinstance(strict, bool):
        raise ValueError(f"resolver.strict must be true or false, got {strict!r}")
    max_hops = config_manager.get("resolver", "max_symlink_hops", DEFAULT_MAX_SYMLINK_HOPS)
    if isinstance(max_hops, str) and max_hops.isdigit():
        # values set from the command line arrive as strings
        max_hops = int(max_hops)
    if isinstance(max_hops, bool) or not isinstance(max_hops, int) or max_hops < 1:
        raise ValueError(f"resolver.max_symlink_hops must be a positive integer, got {max_hops!r}")
    return ResolverSettings(strict=bool(strict), max_symlink_hops=int(max_hops))
