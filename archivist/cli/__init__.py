"""Command-line interface for archivist."""
