"""Runtime configuration of the document pipeline.

Settings are resolved from keyword arguments first, then from
`DOCFLOW_`-prefixed environment variables, then from defaults:

    DOCFLOW_VARIABLES_SUFFIX=.env.yaml
    DOCFLOW_INCLUDE_EXTENSIONS='[".yaml", ".yml", ".flow"]'
"""

from pydantic import Field, field_validator
from pydantic_settings import SettingsConfigDict

from docflow.models import SettingsModel
from docflow.names import MARKUP_EXTENSIONS, VARIABLES_SUFFIX


class PipelineSettings(SettingsModel):
    """Settings shared by the workspace, the include resolver and the pipeline."""

    model_config = SettingsConfigDict(env_prefix='DOCFLOW_')

    variables_suffix: str = Field(
        default=VARIABLES_SUFFIX,
        min_length=1,
        title='Variables file suffix',
        description=(
            'File name suffix of the variables file discovered '
            'at the workspace root.'
        ),
    )

    include_extensions: tuple[str, ...] = Field(
        default=MARKUP_EXTENSIONS,
        title='Includable extensions',
        description=(
            'File extensions parsed as markup when included. '
            'Includes of any other extension resolve to null.'
        ),
    )

    encoding: str = Field(
        default='utf-8',
        title='Source encoding',
        description='Encoding used to read documents and included files.',
    )

    @field_validator('include_extensions')
    @classmethod
    def normalize_extensions(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        """Lowercase extensions and ensure the leading dot."""
        return tuple(
            item.lower() if item.startswith('.') else f'.{item.lower()}'
            for item in value
        )
