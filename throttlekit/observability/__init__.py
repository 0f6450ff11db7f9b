"""
Observability utilities.
"""
