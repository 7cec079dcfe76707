"""Resource scheme: the registration kinds the registry understands.

The scheme is a plain value built by build_scheme() at startup. Nothing
is registered as a side effect of importing a models module.
"""

from typing import Any

from .base import FederationBaseModel
from .cluster import GROUP_VERSION, MemberCluster, MemberClusterList


class UnknownKindError(ValueError):
    """Raised when a manifest names an apiVersion/kind the scheme lacks."""

    def __init__(self, api_version: str | None, kind: str | None):
        self.api_version = api_version
        self.kind = kind
        super().__init__(f"no kind {kind!r} is registered for version {api_version!r}")


class Scheme:
    """Maps (apiVersion, kind) pairs to model classes."""

    def __init__(self) -> None:
        self._types: dict[tuple[str, str], type[FederationBaseModel]] = {}

    def register(self, group_version: str, *models: type[FederationBaseModel]) -> None:
        """Register models under a group/version using each model's default kind."""
        for model in models:
            kind = model.model_fields["kind"].default
            self._types[(group_version, kind)] = model

    def recognizes(self, api_version: str, kind: str) -> bool:
        return (api_version, kind) in self._types

    def known_kinds(self) -> list[str]:
        return sorted(f"{gv}/{kind}" for gv, kind in self._types)

    def decode(self, manifest: dict[str, Any]) -> FederationBaseModel:
        """Decode a manifest into the model registered for its kind.

        Raises:
            UnknownKindError: apiVersion/kind is not registered
            pydantic.ValidationError: the manifest does not match the model
        """
        api_version = manifest.get("apiVersion")
        kind = manifest.get("kind")
        model = self._types.get((api_version, kind))
        if model is None:
            raise UnknownKindError(api_version, kind)
        return model.model_validate(manifest)


def build_scheme() -> Scheme:
    """Build the scheme holding the member cluster kinds."""
    scheme = Scheme()
    scheme.register(GROUP_VERSION, MemberCluster, MemberClusterList)
    return scheme
