"""HTTP access to member cluster API servers.

Shared by the endpoint probe and the metadata sync: endpoint
normalization, trust anchor handling and authenticated client creation.
"""

from __future__ import annotations

import ssl

import httpx
from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding

from shared.models import ClusterCredentials


class InvalidCABundle(ValueError):
    """The registration's CA bundle holds no usable PEM certificate."""

    pass


def normalize_endpoint(api_endpoint: str) -> str:
    """Turn host[:port] or a URL into a base URL.

    A value without a scheme is contacted over https.
    """
    endpoint = api_endpoint.strip().rstrip("/")
    if "://" not in endpoint:
        endpoint = f"https://{endpoint}"
    return endpoint


def build_ssl_context(ca_bundle: bytes | None) -> ssl.SSLContext | bool:
    """Build the TLS verification setting for a member cluster.

    Returns True (system trust) when no bundle is given.

    Raises:
        InvalidCABundle: the bundle cannot be parsed as PEM certificates
    """
    if not ca_bundle:
        return True

    try:
        certificates = x509.load_pem_x509_certificates(ca_bundle)
    except ValueError as e:
        raise InvalidCABundle(f"caBundle is not a valid PEM certificate bundle: {e}") from e

    cadata = "".join(certificate.public_bytes(Encoding.PEM).decode() for certificate in certificates)
    return ssl.create_default_context(cadata=cadata)


def auth_headers(credentials: ClusterCredentials) -> dict[str, str]:
    """Build HTTP headers for bearer authentication."""
    return {
        "Authorization": f"Bearer {credentials.token}",
        "Accept": "application/json",
    }


def open_cluster_client(
    api_endpoint: str,
    credentials: ClusterCredentials,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an authenticated client for a member cluster.

    Raises:
        InvalidCABundle: the credentials carry an unusable trust anchor
    """
    return httpx.AsyncClient(
        base_url=normalize_endpoint(api_endpoint),
        headers=auth_headers(credentials),
        verify=build_ssl_context(credentials.ca_bundle),
        timeout=timeout,
        transport=transport,
    )


def is_certificate_error(exc: BaseException) -> bool:
    """Check whether a transport error was caused by TLS verification."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, ssl.SSLCertVerificationError):
            return True
        if "CERTIFICATE_VERIFY_FAILED" in str(current):
            return True
        current = current.__cause__ or current.__context__
    return False
