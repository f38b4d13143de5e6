"""FastAPI backend for browsing the Artsy catalog and bookmarking artists.

This package provides REST API endpoints that proxy the Artsy API and
manage user accounts, sessions and favorite artists.
"""

__version__ = "0.1.0"
