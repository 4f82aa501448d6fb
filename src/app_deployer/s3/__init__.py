"""
S3 asset management.
"""
