"""tgrelay HTTP surface.

Provides create_api_app() for building the FastAPI application the
polling agent talks to.
"""
