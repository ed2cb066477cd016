"""
Franchise auth - multi-tenant registration, authentication and
franchise-scoped user management.
"""

__version__ = "0.1.0"
