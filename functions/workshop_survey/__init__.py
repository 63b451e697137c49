"""
Workshop registration survey service.

This package provides a FastAPI application for the multi-step workshop
survey and its admin dashboard, with a remote-first submission store that
falls back to a durable local key/value store when the hosted backend is
unavailable.
"""
