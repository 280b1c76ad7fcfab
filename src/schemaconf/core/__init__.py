"""
Core of schemaconf.

- config: formats, merge, update, schema and resolution
- utils: logging helpers
- errors: exception hierarchy
"""
