"""
Template generation for deployment targets.
"""
