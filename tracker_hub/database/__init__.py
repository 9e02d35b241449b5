"""
Database Module
SQLAlchemy models, connection handling and query helpers.
"""
