"""
Cache key management.

Centralized cache key definitions to:
- Prevent key collisions between this cache and other users of the store
- Keep key construction deterministic across interceptor instances
"""

from typing import Optional


class CacheKeys:
    """
    Centralized cache key definitions.

    Naming convention: {namespace}:{path}[?{query}]

    Examples:
        - response:/product/ -> Product listing
        - response:/product/?page=2 -> Second page of the listing
        - response:/category/42 -> Category detail
    """

    DEFAULT_NAMESPACE = "response"

    # TTLs (in seconds)
    TTL_SHORT = 60 * 5        # 5 minutes
    TTL_DEFAULT = 60 * 15     # 15 minutes
    TTL_LONG = 60 * 60        # 1 hour

    @staticmethod
    def response(namespace: str, path: str, query_string: Optional[str] = None) -> str:
        """Cache key for a response body, from the request path and raw query."""
        if query_string:
            return f"{namespace}:{path}?{query_string}"
        return f"{namespace}:{path}"

    @classmethod
    def from_scope(cls, namespace: str, scope: dict) -> str:
        """
        Cache key for an ASGI HTTP scope.

        Headers and body never contribute to the key; only the request path
        as sent by the client (percent-encoding and mount prefix kept) and
        the raw query string do. Servers that omit `raw_path` fall back to
        the decoded `path`.
        """
        raw_path = scope.get("raw_path")
        if raw_path:
            # Some clients leave the query on raw_path
            path = raw_path.split(b"?", 1)[0].decode("latin-1")
        else:
            path = scope.get("path") or "/"
        root_path = scope.get("root_path", "")
        # Servers that strip the mount prefix from `path` keep it in `root_path`
        if root_path and not path.startswith(root_path):
            path = root_path.rstrip("/") + path
        query = scope.get("query_string", b"")
        if isinstance(query, bytes):
            query = query.decode("latin-1")
        return cls.response(namespace, path, query)
