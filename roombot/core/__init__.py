"""Core, framework-free building blocks.

This package should stay free of FastAPI/httpx imports so it can be reused by the
headless runner and unit-tested in isolation.
"""
