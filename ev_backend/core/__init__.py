"""Core mathematics and configuration for the positive-EV finder.

This package contains pure building blocks:

- ``odds_math``  — price conversion, implied probability, expected value
- ``kelly``      — fractional Kelly stake sizing
- ``sportsbooks``— the sportsbook registry (ids and display names)
- ``snapshot``   — frozen DTOs for events, markets, quotes and results

Nothing in this package imports from ``ev_backend.services``.
All modules are side-effect-free and unit-testable in isolation.
"""
