"""Utility modules for schemaconf."""
