"""
Configuration handling: validation, loading and resource naming.
"""
