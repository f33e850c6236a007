"""
Tests package - Test suite for the Integreatly operator.

Contains:
- unit/: Unit tests for individual components, run against an in-memory cluster
- fixtures/: In-memory cluster and sample Installation resources
"""
