"""Exceptions for Cluster Registry operations.

Network and authentication faults against a member cluster are not
exceptions: they are probe outcomes. The classes here cover configuration
faults, secondary-query faults and registry lookups.
"""


class ClusterRegistryError(Exception):
    """Base exception for Cluster Registry errors."""

    pass


class CredentialError(ClusterRegistryError):
    """Credentials for a member cluster could not be resolved.

    A configuration fault: surfaced on the Ready condition with reason
    CredentialResolutionFailed and never retried faster than the normal
    probe interval.
    """

    def __init__(self, namespace: str, secret_name: str, message: str):
        self.namespace = namespace
        self.secret_name = secret_name
        super().__init__(message)


class CredentialNotFound(CredentialError):
    """The referenced secret does not exist."""

    def __init__(self, namespace: str, secret_name: str):
        super().__init__(
            namespace,
            secret_name,
            f"secret {namespace}/{secret_name} not found",
        )


class CredentialMalformed(CredentialError):
    """The referenced secret has no usable token."""

    pass


class MetadataQueryFailed(ClusterRegistryError):
    """Node inventory of a reachable cluster could not be read.

    Soft fault: logged, the Ready condition and last known zones/region
    are left as they are.
    """

    pass


class ClusterNotFoundError(ClusterRegistryError):
    """Raised when a cluster is not registered."""

    pass


class ClusterAlreadyExistsError(ClusterRegistryError):
    """Raised when a cluster with the same name already exists."""

    pass
