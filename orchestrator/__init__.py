"""
Orchestration package for coordinating the export passes.

This package sequences the migration: Index (pass 1) → Export (pass 2) →
Summary. No document is exported before every document has been indexed.
"""

from .migration_orchestrator import MigrationOrchestrator

__all__ = [
    'MigrationOrchestrator'
]
