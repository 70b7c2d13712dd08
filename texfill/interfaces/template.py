"""Template extraction and injection interfaces.

Defines abstract base classes for the schema extractor and the value
injector of the template-to-PDF pipeline.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any


class BaseSchemaExtractor(ABC):
    """Abstract base class for field schema extraction strategies.

    Reads raw LaTeX source and returns the ordered list of fillable fields.
    """

    @abstractmethod
    async def extract(self, template: str) -> Any:
        """Extract the field schema of a template.

        Args:
            template: Raw LaTeX source.

        Returns:
            A FieldSchema with at least one field.

        Raises:
            ExtractionError: If the template is malformed or the model output
                is unusable.
        """


class BaseTemplateInjector(ABC):
    """Abstract base class for value injection strategies.

    Substitutes user-supplied values into a template's placeholders.
    """

    @abstractmethod
    def inject(
        self,
        template: str,
        values: Mapping[str, Any],
        fields: Sequence[Any] | None = None,
    ) -> str:
        """Inject values into the template.

        Args:
            template: Raw LaTeX source.
            values: Mapping of field id to user value.
            fields: Optional field schema restricting which ids are substituted.

        Returns:
            The processed document.

        Raises:
            InjectionError: If the processed document lacks required structure.
        """
