"""
Deployment orchestration.
"""
