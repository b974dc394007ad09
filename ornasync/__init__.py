"""
ornasync -- Reconcile the public Orna codex with the orna.guide admin panel.

Subpackages and modules:
    models          Pydantic records for codex and guide entities.
    data_store      OrnaData snapshot (codex + guide) and its lookups.
    matching        Per-kind matchers and the reconciliation driver.
    guide_client    HTTP client for the guide's admin panel.
    refresh         Bulk snapshot refresh from the guide.
    backup_manager  Snapshot archives.
    backup_merger   Folding archives into one snapshot.
    locale_db       Translation overlays.
    cli             Command line entry point.
"""

__version__ = "0.4.0"
