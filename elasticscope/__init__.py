"""
ElasticScope - an administration and monitoring backend for Elasticsearch clusters.

This package provides the HTTP API for managing saved cluster connections,
browsing indices and documents, running searches and raw REST calls, and
copying documents between clusters.
"""

__version__ = "0.1.0"

from .app import create_app

__all__ = ["create_app", "__version__"]
