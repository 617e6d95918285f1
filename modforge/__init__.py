"""modforge -- modular Flutter project scaffolding.

Resolves a selection of optional modules into a deterministic order, merges
their dependency contributions, renders their templates, and writes the
result to disk under an explicit overwrite policy.
"""

__version__ = "0.1.0"
