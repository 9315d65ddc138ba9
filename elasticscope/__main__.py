"""
Entry point for running the server as a module.

This allows running the server with: python -m elasticscope
"""

from .server import main

if __name__ == "__main__":
    main()
