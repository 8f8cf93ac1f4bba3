"""Search tests for each repository adapter.

This package contains backend-specific tests that validate:
- Criteria compilation into the native query
- Execution against a driver double (mocked psycopg2 cursor, mongomock, mocked Elasticsearch client)
- Paging, sorting and row mapping of the native answer
- Wrapping of driver errors into BackendExecutionError

Each test module corresponds to a specific backend:
- test_postgres.py - PostgreSQL (psycopg2)
- test_mongo.py - MongoDB (pymongo, executed on mongomock)
- test_elasticsearch.py - Elasticsearch (8.x client)

Checks against real servers live in scripts/tests and skip without credentials.
"""
