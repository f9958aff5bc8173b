"""
Content caching package.

Cache-aside primitives for the content read path: key derivation, TTL policy,
the Redis cache client and write-triggered invalidation. Keep entries
short-lived and invalidate explicitly after writes.
"""
