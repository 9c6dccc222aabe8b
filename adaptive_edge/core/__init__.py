"""Pure building blocks for the adaptive recommendation engine.

This package contains pure, sport-agnostic building blocks:

- ``thresholds``    — per-sport minimum edge / confidence / win-prob table
- ``odds_math``     — odds conversion, spread-cover probability, normalization
- ``prediction``    — prediction / bias / odds DTOs and the bias corrector
- ``segments``      — segmentation axes (closed enums) and report types
- ``tuning_config`` — versioned tuning configuration and its neutral default
- ``confidence``    — four-stage confidence adjustment pipeline

Nothing in this package imports from ``adaptive_edge.services`` or
``adaptive_edge.models``.  All modules are side-effect-free and unit-testable
in isolation.
"""
