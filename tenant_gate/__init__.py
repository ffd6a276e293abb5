"""
Tenant Gate - request identity resolution for multi-tenant web applications
"""
__version__ = "1.0.0"
