"""
API Module
Flask blueprints, wire resources and error translation.
"""
