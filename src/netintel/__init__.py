"""
netintel - public IP and best-effort geolocation aggregation
Fans out to third-party lookup endpoints and merges their partial answers
"""

__version__ = "1.0.0"
