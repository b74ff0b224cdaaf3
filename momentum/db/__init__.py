"""
Persistence layer: ORM models, record schemas, the record store and the
per-domain repositories built on it.
"""
