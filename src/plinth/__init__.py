"""
Plinth - multi-tenant SaaS backend with a dynamic feature module system.
"""

__version__ = "0.1.0"
