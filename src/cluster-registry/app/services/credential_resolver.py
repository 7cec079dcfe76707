"""Kubernetes Secrets-based credential resolution.

Each member cluster registration names a secret in the control plane
namespace. The secret must carry a "token" key holding the bearer token
used to reach the member cluster.
"""

from __future__ import annotations

import asyncio
import base64
import binascii

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from shared.config import ClusterRegistrySettings
from shared.models import ClusterCredentials
from shared.observability import get_logger

from ..errors import CredentialMalformed, CredentialNotFound

logger = get_logger(__name__)

TOKEN_KEY = "token"


class CredentialResolver:
    """Resolves secret references into member cluster credentials.

    No retries: a missing or malformed secret is a configuration error and
    is reported to the caller immediately.
    """

    def __init__(
        self,
        settings: ClusterRegistrySettings,
        k8s_client: client.CoreV1Api | None = None,
    ):
        self.namespace = settings.control_plane_namespace
        self.kubeconfig = settings.kubeconfig
        self.kube_context = settings.kube_context
        self.timeout = settings.single_call_timeout_seconds
        self._k8s_client = k8s_client

    def _get_k8s_client(self) -> client.CoreV1Api:
        """Get or create the control plane API client."""
        if self._k8s_client is None:
            if self.kubeconfig:
                api_client = config.new_client_from_config(
                    config_file=self.kubeconfig,
                    context=self.kube_context,
                )
            else:
                try:
                    # Try in-cluster config first
                    configuration = client.Configuration()
                    config.load_incluster_config(client_configuration=configuration)
                    api_client = client.ApiClient(configuration)
                except config.ConfigException:
                    # Fall back to kubeconfig
                    api_client = config.new_client_from_config(context=self.kube_context)

            self._k8s_client = client.CoreV1Api(api_client)

        return self._k8s_client

    async def resolve(
        self,
        secret_name: str,
        namespace: str | None = None,
        ca_bundle: bytes | None = None,
    ) -> ClusterCredentials:
        """Resolve a secret reference into credentials.

        Args:
            secret_name: Name of the secret holding the token
            namespace: Namespace of the secret (defaults to the control plane namespace)
            ca_bundle: Trust anchor from the registration, passed through

        Returns:
            ClusterCredentials with a non-empty token

        Raises:
            CredentialNotFound: the secret does not exist
            CredentialMalformed: the token key is absent, empty or undecodable
            ApiException: any other control plane error
        """
        namespace = namespace or self.namespace
        k8s = self._get_k8s_client()

        try:
            # The client is synchronous; keep it off the event loop
            secret = await asyncio.to_thread(
                k8s.read_namespaced_secret,
                name=secret_name,
                namespace=namespace,
                _request_timeout=self.timeout,
            )
        except ApiException as e:
            if e.status == 404:
                logger.warning("Credential secret not found", namespace=namespace, secret=secret_name)
                raise CredentialNotFound(namespace, secret_name) from e
            raise

        token = self._decode_token(secret, namespace, secret_name)
        return ClusterCredentials(token=token, ca_bundle=ca_bundle)

    def _decode_token(self, secret: client.V1Secret, namespace: str, secret_name: str) -> str:
        data = secret.data or {}
        encoded = data.get(TOKEN_KEY)
        if not encoded:
            raise CredentialMalformed(
                namespace,
                secret_name,
                f"secret {namespace}/{secret_name} has no {TOKEN_KEY!r} key",
            )

        try:
            token = base64.b64decode(encoded, validate=True).decode().strip()
        except (binascii.Error, UnicodeDecodeError) as e:
            raise CredentialMalformed(
                namespace,
                secret_name,
                f"secret {namespace}/{secret_name} key {TOKEN_KEY!r} is not valid base64 text",
            ) from e

        if not token:
            raise CredentialMalformed(
                namespace,
                secret_name,
                f"secret {namespace}/{secret_name} key {TOKEN_KEY!r} is empty",
            )
        return token
