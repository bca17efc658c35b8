"""Selector tagged union.

A recipe field is either a plain CSS selector whose text is read, or an
attribute selector whose attribute is read (falling back to text). The
kind is decided once, when the selector string is parsed.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TextSelector(BaseModel):
    """CSS selector whose matched element's text is extracted.

    Attributes:
        css: The CSS selector

    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    kind: Literal['text'] = 'text'
    css: str = Field(description='CSS selector')

    def __str__(self) -> str:
        return self.css


class AttributeSelector(BaseModel):
    """CSS selector whose matched element's attribute is extracted.

    Used for sites that only carry the full headline in a ``title``,
    ``alt`` or ``data-*`` attribute.

    Attributes:
        css: The full CSS selector including the bracket clause
        attr_name: Attribute read off the first match

    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    kind: Literal['attribute'] = 'attribute'
    css: str = Field(description='CSS selector')
    attr_name: str = Field(description='Attribute to read from the matched element')

    def __str__(self) -> str:
        return self.css


Selector = Annotated[TextSelector | AttributeSelector, Field(discriminator='kind')]
