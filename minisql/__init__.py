"""An in-memory relational query engine: expression trees, selections, aggregation and joins."""

__version__ = "0.1.0"
__all__ = ["__version__"]