"""
Integration tests.

These run the real application lifespan (database engine, external cache
client, identity adapter) instead of pre-seeded fakes.
"""
