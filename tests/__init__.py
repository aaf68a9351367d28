"""
Test suite for clusterlab.

Tests are organized by component:
- test_algorithms/: Clustering, evaluation, reduction and dispatch
- test_config.py: Environment-driven configuration
"""
