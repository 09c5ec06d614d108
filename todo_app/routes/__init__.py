"""
Routes package for the task service.

This package contains route blueprints:
- api: versioned REST endpoints for task CRUD and the health check
"""
