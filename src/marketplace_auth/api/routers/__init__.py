"""
marketplace_auth.api.routers

Router package: auth endpoints, admin endpoints and health probes.
"""
