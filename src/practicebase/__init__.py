"""PracticeBase - in-memory REST data engine for practice front-ends.

Collections of JSON records with filtering, sorting, pagination,
relational loading and declarative per-property access rules.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
