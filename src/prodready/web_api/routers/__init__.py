"""
API Routers
===========
Each router handles a specific domain of the API.
"""
from . import fix, health, scan

__all__ = ["fix", "health", "scan"]
