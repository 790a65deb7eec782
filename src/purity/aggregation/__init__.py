"""Aggregation module for submission statistics.

- Validates submissions and folds them into the global aggregate
- Produces the percentage report
- Forbidden: database access, HTTP concerns
"""
