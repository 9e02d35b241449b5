"""
Tracker Hub
CRUD service for issue tracker connections.
"""

__version__ = '1.0.0'
