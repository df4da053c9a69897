"""Configuration management: profiles, backup filters, and TOML loading.

Usage:
    >>> from ddl_backup.config import load_backup_config, BackupConfig, DatabaseProfile
"""

from ddl_backup.config.loader import load_backup_config
from ddl_backup.config.models import BackupConfig, BackupFilters, DatabaseProfile, DdlBackupConfig

__all__ = [
    "load_backup_config",
    "BackupConfig",
    "BackupFilters",
    "DatabaseProfile",
    "DdlBackupConfig",
]
