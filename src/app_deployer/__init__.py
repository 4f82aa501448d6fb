"""
App Deployer - A system for deploying simple web applications to AWS with CloudFormation.

This package provides tools for deriving AWS-compliant resource names from an application
configuration, generating a CloudFormation template for it, and driving the stack through
its create-or-update lifecycle.
"""

__version__ = "0.1.0"
