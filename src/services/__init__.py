"""
Adapters for the external services used by the sweeper.

This package contains the Gmail mailbox adapter, the S3 folder storage
and helper functions for S3 interactions.
"""

__all__ = ['gmail', 's3', 's3_folders']
