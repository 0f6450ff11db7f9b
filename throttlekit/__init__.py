"""
throttlekit: pluggable rate limiting for REST APIs.
"""

__version__ = "1.0.0"
