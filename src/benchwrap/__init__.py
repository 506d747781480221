"""benchwrap — compare Go benchmark results across git revisions."""

__version__ = "0.1.0"
