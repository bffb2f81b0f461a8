"""Domain Layer: value objects, request lifecycle, outcomes and errors.

Nothing in this package performs I/O.
"""
