"""HTTP API for network intel lookups"""
