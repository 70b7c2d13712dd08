"""Template engine domain models.

Pydantic models specific to field extraction and template validation.
These models live here to avoid circular imports with the API layer.
"""

from pydantic import BaseModel, Field

FIELD_ID_PATTERN = r"^[a-z0-9_]+$"


class FieldDescriptor(BaseModel):
    """A fillable field extracted from a template."""

    id: str = Field(
        min_length=1,
        pattern=FIELD_ID_PATTERN,
        description="Machine-readable key, lowercase letters, digits and underscores",
    )
    label: str = Field(min_length=1, description="Human-readable label for the form")
    default: str = Field(default="", description="Current value or placeholder text")


class FieldSchema(BaseModel):
    """Ordered field list produced by the schema extractor."""

    fields: list[FieldDescriptor] = Field(description="Fields in extraction order")
    candidates_found: int = Field(
        ge=0, description="Number of entries in the model response before validation"
    )

    @property
    def ids(self) -> list[str]:
        return [field.id for field in self.fields]


class TemplateStructure(BaseModel):
    """Structural markers found in a template."""

    has_document_class: bool
    has_begin_document: bool
    has_end_document: bool
    has_new_commands: bool
    has_def_commands: bool


class TemplateValidation(BaseModel):
    """Result of a quick structural check of a template."""

    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    structure: TemplateStructure
