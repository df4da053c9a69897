"""ddl-backup: dependency-ordered DDL synthesis for MPP Postgres metadata backups.

Classifies partitioned tables, resolves a creation order across functions,
types, tables and views, and renders CREATE statements with their comments,
owners and privileges into a metadata file with a byte-range table of contents.

Usage:
    from ddl_backup import CatalogSnapshot, backup_predata, load_backup_config
    from ddl_backup import MetadataFile, TOC
"""

__version__ = "0.1.0"

# Backup pipeline
from ddl_backup.backup.models import BackupResult, CatalogSnapshot
from ddl_backup.backup.predata import backup_predata

# Config
from ddl_backup.config.loader import load_backup_config
from ddl_backup.config.models import BackupConfig, DatabaseProfile

# Output
from ddl_backup.ddl.output import TOC, MetadataFile

# Factory
from ddl_backup.factory import ProfileNotFoundError, get_introspector, resolve_url

# Schema
from ddl_backup.schema.dependencies import DependencyCycleError
from ddl_backup.schema.partition import IdentifierLengthError

__all__ = [
    # Backup pipeline
    "BackupResult",
    "CatalogSnapshot",
    "backup_predata",
    # Config
    "load_backup_config",
    "BackupConfig",
    "DatabaseProfile",
    # Output
    "MetadataFile",
    "TOC",
    # Factory
    "get_introspector",
    "resolve_url",
    "ProfileNotFoundError",
    # Errors
    "DependencyCycleError",
    "IdentifierLengthError",
]
