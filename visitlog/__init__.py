"""
Backend package for the visit-log API.

This package provides a FastAPI application that stores visit records per
user and issues presigned upload URLs for record photos, with storage and
database abstractions so the same code runs against in-memory backends in
tests and Postgres/S3 in production.
"""
