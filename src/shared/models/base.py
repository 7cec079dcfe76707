"""Base model configuration for all Pydantic models.

Registration objects travel as control-plane manifests, so field names
are snake_case in Python and camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class FederationBaseModel(BaseModel):
    """Base model with common configuration.

    Conventions:
    - All timestamps are ISO 8601 format with timezone (UTC)
    - Field names are snake_case in Python, camelCase when serialized by alias
    - Enum fields hold their string values
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=True,
    )
