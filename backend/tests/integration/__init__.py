"""
Integration Tests

Integration tests require a running PostgreSQL test database
(see POSTGRES_TEST_* in conftest.py).
"""
