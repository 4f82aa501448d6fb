"""
Lambda function code management.
"""
