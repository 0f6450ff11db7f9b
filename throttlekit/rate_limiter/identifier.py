"""
Rate limit identifier extraction.

A request is partitioned by its API key when one is supplied, otherwise by
the client IP address. The per-path variant appends the request path so
each route gets an independent limit.
"""

import hashlib

from starlette.requests import Request

from throttlekit.exceptions import InvalidIdentifierError

API_KEY_PREFIX = "api"
IP_PREFIX = "ip"


def normalize_path(path: str) -> str:
    """
    Normalize a request path for use in a rate limit key.

    Args:
        path: Raw URL path

    Returns:
        Path with duplicate and trailing slashes removed ("/" stays "/")
    """
    segments = [segment for segment in path.split("/") if segment]
    return "/" + "/".join(segments)


def client_ip(request: Request, trust_proxy_headers: bool = True) -> str | None:
    """
    Resolve the client IP address of a request.

    With trust_proxy_headers, the first X-Forwarded-For entry wins, then
    X-Real-IP, then the socket peer address.

    Args:
        request: Incoming request
        trust_proxy_headers: Whether to honor proxy-supplied headers

    Returns:
        IP address string, or None if it cannot be determined
    """
    if trust_proxy_headers:
        forwarded_for = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

        real_ip = request.headers.get("X-Real-IP", "").strip()
        if real_ip:
            return real_ip

    if request.client and request.client.host:
        return request.client.host
    return None


def hash_identifier(identifier: str) -> str:
    """Hash an identifier for logging without exposing API keys."""
    return hashlib.sha256(identifier.encode()).hexdigest()[:16]


class IdentifierExtractor:
    """Derives the rate limit partition key for a request."""

    def __init__(
        self,
        api_key_header: str = "X-API-Key",
        per_path: bool = False,
        trust_proxy_headers: bool = True,
    ):
        """
        Initialize identifier extractor.

        Args:
            api_key_header: Header carrying the caller credential
            per_path: Append the normalized request path to the identifier
            trust_proxy_headers: Honor X-Forwarded-For / X-Real-IP
        """
        self.api_key_header = api_key_header
        self.per_path = per_path
        self.trust_proxy_headers = trust_proxy_headers

    def __call__(self, request: Request) -> str:
        """
        Extract the identifier for request.

        Args:
            request: Incoming request

        Returns:
            "api:<key>" or "ip:<addr>", with ":<path>" appended in per-path mode

        Raises:
            InvalidIdentifierError: If neither a credential nor a client IP is available
        """
        api_key = request.headers.get(self.api_key_header, "").strip()
        if api_key:
            identifier = f"{API_KEY_PREFIX}:{api_key}"
        else:
            ip = client_ip(request, self.trust_proxy_headers)
            if not ip:
                raise InvalidIdentifierError("Request carries neither an API key nor a client IP")
            identifier = f"{IP_PREFIX}:{ip}"

        if self.per_path:
            identifier = f"{identifier}:{normalize_path(request.url.path)}"
        return identifier

    @staticmethod
    def source(identifier: str) -> str:
        """Return the identifier source tag ("api" or "ip")."""
        return identifier.split(":", 1)[0]
