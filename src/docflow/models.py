"""Base Pydantic models.

Every structured value of the package (document schemas, pipeline
outcomes, diagnostics) derives from `SchemaModel`; runtime
configuration derives from `SettingsModel`.
"""

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for structured values.

    Instances are frozen, so outcomes and diagnostics can be shared
    between callers, and unknown fields are rejected.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for settings read from the environment.

    Unrelated environment variables are ignored.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )
