"""
Field resolver: walks a field's selector cascade inside one gig container.
"""

import logging
from typing import Optional

from bs4 import Tag

from src.FIVERR.config import MIN_TITLE_LENGTH
from src.FIVERR.fields import SELF
from src.FIVERR.models import FieldSpec, Strategy
from src.FIVERR.utils import clean_text

logger = logging.getLogger(__name__)


def _query(container: Tag, selector: str) -> Optional[Tag]:
    if selector == SELF:
        return container if container.name == 'a' else None
    return container.select_one(selector)


def _read(element: Tag, attribute: Optional[str]) -> str:
    if attribute is None:
        return element.get_text(" ", strip=True)
    value = element.get(attribute)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def _conforms(value: str, field_spec: FieldSpec) -> bool:
    if not value:
        return False
    return field_spec.shape is None or field_spec.shape(value)


def read_strategy(container: Tag, strategy: Strategy, field_spec: FieldSpec) -> Optional[str]:
    """
    Apply a single strategy to a container.

    Args:
        container: Gig container element
        strategy: Selector plus attribute to read
        field_spec: Owning field (for its shape check)

    Returns:
        The conforming raw value, or None if this strategy does not produce one
    """
    element = _query(container, strategy.selector)
    if element is None:
        return None

    value = _read(element, strategy.attribute)
    if _conforms(value, field_spec):
        return value

    if strategy.fallback_attribute:
        value = _read(element, strategy.fallback_attribute)
        if _conforms(value, field_spec):
            return value

    return None


def resolve_field(container: Tag, field_spec: FieldSpec) -> Optional[str]:
    """
    Resolve one field from a gig container.

    Container-level attributes are checked first and win when they carry a
    long enough value. Then strategies are tried in declared order and the
    first conforming value is returned.

    Args:
        container: Gig container element
        field_spec: Field lookup table entry

    Returns:
        Raw (unvalidated) value, or None when every strategy is exhausted
    """
    for attribute in field_spec.container_attributes:
        value = clean_text(_read(container, attribute))
        if len(value) >= MIN_TITLE_LENGTH and _conforms(value, field_spec):
            return value

    for strategy in field_spec.strategies:
        value = read_strategy(container, strategy, field_spec)
        if value is not None:
            return value

    logger.debug(f"No strategy matched field '{field_spec.name}'")
    return None
