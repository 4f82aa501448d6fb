"""
CloudFormation stack lifecycle management.
"""
