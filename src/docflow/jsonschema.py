"""JSON Schema management."""

from functools import cache
from json import dumps

from pydantic.json_schema import GenerateJsonSchema

from docflow.schema import WorkflowDocument


class SchemaGenerator(GenerateJsonSchema):
    """JSON Schema generator for resolved workflow documents."""

    @classmethod
    @cache
    def make_schema(cls, indent: int | str | None = 4) -> str:
        """Generate the JSON Schema for workflow documents.

        Args:
            indent: Indentation level used for JSON formatting.

        Returns:
            Serialized JSON Schema string.
        """
        schema = {
            **WorkflowDocument.model_json_schema(schema_generator=cls),
            'title': 'docflow',
            'description': 'JSON Schema for resolved docflow workflow documents',
            '$schema': cls.schema_dialect,
        }

        return dumps(
            schema,
            ensure_ascii=False,
            sort_keys=True,
            indent=indent,
        )
