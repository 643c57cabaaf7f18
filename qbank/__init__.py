"""Question bank administration core: bulk import, preview, export and bulk operations."""

__version__ = "0.1.0"
