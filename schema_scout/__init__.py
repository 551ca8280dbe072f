# schema_scout/__init__.py
"""
SchemaScout package initializer.
Defines package version and exposes the analysis engine.
"""
__version__ = "0.1.0"

from schema_scout.engine import Engine  # noqa: E402

__all__ = ["Engine", "__version__"]
