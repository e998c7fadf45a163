"""
Web application package for the search engine.

Provides a FastAPI-based REST API that runs one search per request.
"""
