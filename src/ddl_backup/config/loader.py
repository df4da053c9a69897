"""Configuration loading for ddl-backup."""

import tomllib
from pathlib import Path

from pydantic import ValidationError

from ddl_backup.config.models import BackupConfig, DatabaseProfile, DdlBackupConfig

DEFAULT_CONFIG_PATH = Path("backup.toml")


def load_backup_config(config_path: Path | str | None = None) -> DdlBackupConfig:
    """Load backup configuration from TOML file.

    Args:
        config_path: Path to backup.toml (default: ./backup.toml)

    Returns:
        DdlBackupConfig with the [backup] settings and all profiles

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid

    Example:
        >>> config = load_backup_config("backup.toml")
        >>> config.backup.leaf_partition_data
        False
        >>> sorted(config.profiles)
        ['local', 'prod']
    """
    config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    if not config_path.exists():
        raise FileNotFoundError(
            f"Backup config not found: {config_path}\n"
            f"Create a backup.toml with a [backup] table and [profiles.<name>] entries."
        )

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {config_path}: {e}") from e

    try:
        # Parse profiles
        profiles = {}
        for name, profile_data in data.get("profiles", {}).items():
            profiles[name] = DatabaseProfile(**profile_data)

        backup = BackupConfig(**data.get("backup", {}))
    except (ValidationError, TypeError) as e:
        raise ValueError(f"Invalid backup config in {config_path}:\n{e}") from e

    return DdlBackupConfig(backup=backup, profiles=profiles)
