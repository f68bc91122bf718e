"""Shared request-scope primitives.

This module contains the tenant context value object and its probe, which
are shared by the service template (which resolves tenants from request
headers) and by business handlers (which consume the resolved context).
"""
