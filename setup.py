#!/usr/bin/env python3
"""
Setup file for sense_exporter package.

Install in development mode:
    pip install -e .

Install with test dependencies:
    pip install -e ".[test]"
"""

from setuptools import setup, find_packages

setup(
    name="sense-exporter",
    version="0.1.0",
    description="Prometheus exporter for Sense energy monitors",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        "prometheus-client>=0.19.0",
        "aiohttp>=3.9.0",
        "psutil>=5.9.0",
        "typer>=0.9.0",
        "pyyaml>=6.0",
        "typing-extensions>=4.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
        ],
        "dev": [
            "black>=23.0.0",
            "ruff>=0.1.0",
            "mypy>=1.7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "sense-exporter=sense_exporter.cli.main:app",
        ],
    },
)
