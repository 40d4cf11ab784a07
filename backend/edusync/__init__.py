"""Application package for the EduSync course-management backend.

This package exposes the service, repository and model modules used by
the FastAPI application in `edusync.main`. It is intentionally
lightweight; individual modules contain the concrete implementations
and documentation.
"""
