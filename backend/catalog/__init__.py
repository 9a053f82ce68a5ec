"""Application package for the department/course catalog backend.

This package exposes the storage, repository, mapper and service modules
used by the FastAPI application and the database setup script. It is
intentionally lightweight; individual modules contain the concrete
implementations and documentation.
"""
