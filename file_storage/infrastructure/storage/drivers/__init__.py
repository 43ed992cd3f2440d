"""Storage drivers, one module per backend.

Backends with optional third-party dependencies (boto3, paramiko) are only
imported by their factory when the adapter is first built.
"""
