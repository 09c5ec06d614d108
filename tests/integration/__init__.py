"""
API test package for the task service.

Tests use the Flask test client and cover:
- CRUD operations and tenant isolation
- Transport and rule validation errors
- Store outage and pool exhaustion handling
"""
