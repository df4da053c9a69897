"""Predata backup pipeline: catalog snapshot in, ordered DDL and TOC out.

Usage:
    >>> from ddl_backup.backup import CatalogSnapshot, backup_predata
"""

from ddl_backup.backup.models import BackupResult, CatalogSnapshot
from ddl_backup.backup.predata import backup_predata, retrieve_and_process_tables

__all__ = [
    "BackupResult",
    "CatalogSnapshot",
    "backup_predata",
    "retrieve_and_process_tables",
]
