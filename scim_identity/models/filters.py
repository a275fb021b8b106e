"""
SCIM filter expressions (RFC 7644 section 3.4.2.2).

Filters are an explicit tagged union: each variant carries a ``kind`` tag and
renders itself with ``to_string()``. Absence of a filter is represented by the
``NullFilter`` variant and detected by its tag via ``is_null_filter``.
"""

from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict


class FilterKind(str, Enum):
    NULL = "null"
    COMPARISON = "comparison"
    AND = "and"
    OR = "or"
    NOT = "not"


class FilterOperator(str, Enum):
    """Comparison operators understood by the SCIM servers we talk to."""

    EQUAL = "eq"
    EQUAL_CI = "eq_ci"  # case-insensitive
    NOT_EQUAL = "ne"
    CONTAINS = "co"
    STARTS_WITH = "sw"
    ENDS_WITH = "ew"
    GREATER_THAN = "gt"


class _FilterBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    def to_string(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.to_string()


class NullFilter(_FilterBase):
    """No filter applied."""

    kind: Literal[FilterKind.NULL] = FilterKind.NULL

    def to_string(self) -> str:
        return ""


class FilterComparison(_FilterBase):
    """``attribute operator "value"``. The value is quoted but never escaped."""

    kind: Literal[FilterKind.COMPARISON] = FilterKind.COMPARISON
    attribute: str
    operator: FilterOperator
    value: str

    def to_string(self) -> str:
        return f'{self.attribute} {self.operator.value} "{self.value}"'


class FilterAnd(_FilterBase):
    kind: Literal[FilterKind.AND] = FilterKind.AND
    expressions: List["FilterExpression"]

    def to_string(self) -> str:
        return "(" + " and ".join(expr.to_string() for expr in self.expressions) + ")"


class FilterOr(_FilterBase):
    kind: Literal[FilterKind.OR] = FilterKind.OR
    expressions: List["FilterExpression"]

    def to_string(self) -> str:
        return "(" + " or ".join(expr.to_string() for expr in self.expressions) + ")"


class FilterNot(_FilterBase):
    kind: Literal[FilterKind.NOT] = FilterKind.NOT
    expression: "FilterExpression"

    def to_string(self) -> str:
        return "not " + self.expression.to_string()


FilterExpression = Union[NullFilter, FilterComparison, FilterAnd, FilterOr, FilterNot]

FilterAnd.model_rebuild()
FilterOr.model_rebuild()
FilterNot.model_rebuild()


NULL_FILTER = NullFilter()

# Some SCIM servers reject an unfiltered search request but accept any
# comparison, so "all resources" is expressed as a filter that always matches.
EPOCH_TIMESTAMP = "1970-01-01T00:00:00Z"
ALL_RESOURCES_FILTER = FilterComparison(
    attribute="meta.lastModified",
    operator=FilterOperator.GREATER_THAN,
    value=EPOCH_TIMESTAMP,
)


def is_null_filter(expression: Optional[FilterExpression]) -> bool:
    """True when no filter should be applied."""
    return expression is None or expression.kind == FilterKind.NULL


def equality_filter(
    default_attribute: str,
    value: str,
    override_attribute: Optional[str] = None,
) -> FilterExpression:
    """
    Build ``attribute eq "value"``, preferring a configured override attribute.

    A blank value yields ``NULL_FILTER`` so callers can reject the lookup
    instead of issuing an unfiltered listing.
    """
    if not value or not value.strip():
        return NULL_FILTER

    return FilterComparison(
        attribute=override_attribute or default_attribute,
        operator=FilterOperator.EQUAL,
        value=value,
    )
