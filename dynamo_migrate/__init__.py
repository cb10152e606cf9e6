"""
dynamo-migrate

Copies DynamoDB tables to DynamoDB-compatible endpoints (ScyllaDB Alternator
or another DynamoDB account), preserving declared attribute types and TTL
settings, and deletes items by attribute value.
"""

__version__ = "0.1.0"
