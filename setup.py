#!/usr/bin/env python3
"""
Setup script for schemaconf package.
"""

from setuptools import setup, find_packages

setup(
    name="schemaconf",
    version="0.3.0",
    description="Typed YAML/JSON configuration loading with versioned default reconciliation",
    author="schemaconf Team",
    package_dir={"": "src"},
    packages=find_packages(where="src", include=["schemaconf", "schemaconf.*"]),
    python_requires=">=3.10",
    install_requires=[
        "PyYAML>=6.0",
        "ruamel.yaml>=0.18",
        "typer>=0.12",
        "rich>=13.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "schemaconf=schemaconf.cli.main:main",
        ],
    },
)
