"""Test package marker so pytest imports these modules as ``tests.*``."""
