"""Command-line interface for schemaconf."""
