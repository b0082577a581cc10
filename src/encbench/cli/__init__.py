"""Command-line interface for encbench."""
