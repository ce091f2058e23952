"""
Environment configuration.

Values are read once at import; tests patch the module attributes or pass
explicit arguments to the factories instead of relying on the environment.
"""

import os

# GraphQL backend
GRAPHQL_URL = os.environ.get("GRAPHQL_URL", "")
GRAPHQL_TIMEOUT = float(os.environ.get("GRAPHQL_TIMEOUT", "10.0"))

# Analytics sink (empty disables analytics)
ANALYTICS_URL = os.environ.get("ANALYTICS_URL", "")

# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

# Prefix for persisted keys, one per device/installation
STORAGE_NAMESPACE = os.environ.get("STORAGE_NAMESPACE", "")


def redis_configured() -> bool:
    """True when both Upstash credentials are present."""
    return bool(UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN)
