"""Test suite for fieldcheck.

This package contains tests for:
- Validator rules (contract and canned rules)
- Field caching and single-field revalidation
- Association validation and nested error folding
- Model-level is_valid / errors aggregation
- Field metadata schema checking
- Field lifecycle state machine
- Event stream and validation reports
"""
