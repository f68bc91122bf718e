"""Request-level building blocks shared by the gateway and every service.

Envelopes, error types, parameter parsing, tenant identity and the storage
contract live here. Neither the gateway nor the service template may be
imported from this package.
"""
