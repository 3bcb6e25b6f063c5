"""
Global test configuration.

Fixtures shared by a single area live in that area's conftest.py
(tests/analysis, tests/services/kg).
"""
