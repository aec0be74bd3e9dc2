"""
Shared utilities: configuration of logging, errors and health checks
"""
