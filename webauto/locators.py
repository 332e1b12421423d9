# webauto/locators.py
"""
@file locators.py
@brief Locator values and ordered fallback locator sets.

A LocatorSet lists equivalent queries for one logical target. Resolution
tries them in order and the first locator that matches at least one node
wins; "no match" is an explicit None result, not an exception.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Sequence, Tuple, Union

from .exceptions import InvalidLocatorError, LocatorAttempt

if TYPE_CHECKING:
    from .session import Session


CSS = "css selector"
XPATH = "xpath"
ID = "id"
NAME = "name"
CLASS_NAME = "class name"
LINK_TEXT = "link text"
PARTIAL_LINK_TEXT = "partial link text"
TAG_NAME = "tag name"

STRATEGIES = (CSS, XPATH, ID, NAME, CLASS_NAME, LINK_TEXT, PARTIAL_LINK_TEXT, TAG_NAME)

# short keys accepted in locator maps and selector prefixes
STRATEGY_ALIASES = {
    "css": CSS,
    "xpath": XPATH,
    "id": ID,
    "name": NAME,
    "class": CLASS_NAME,
    "class_name": CLASS_NAME,
    "link": LINK_TEXT,
    "link_text": LINK_TEXT,
    "partial": PARTIAL_LINK_TEXT,
    "partial_link_text": PARTIAL_LINK_TEXT,
    "tag": TAG_NAME,
    "tag_name": TAG_NAME,
}

_IDENT_RE = re.compile(r"^[A-Za-z_][\w-]*$")
_NAME_ATTR_RE = re.compile(r"^\w+\[name=['\"]([^'\"]+)['\"]\]$")
_PREFIX_RE = re.compile(r"^(css|xpath|id|name|class|link|partial|tag)=(.+)$", re.DOTALL)


def normalize_strategy(strategy: str) -> str:
    key = strategy.strip().lower()
    if key in STRATEGIES:
        return key
    if key in STRATEGY_ALIASES:
        return STRATEGY_ALIASES[key]
    raise ValueError(f"Unknown locator strategy: {strategy!r}")


@dataclass(frozen=True)
class Locator:
    """An opaque query descriptor: strategy tag + query string."""
    strategy: str
    query: str

    def __post_init__(self) -> None:
        if not isinstance(self.query, str) or not self.query.strip():
            raise ValueError("Locator query cannot be empty")
        object.__setattr__(self, "strategy", normalize_strategy(self.strategy))

    @classmethod
    def css(cls, query: str) -> Locator:
        return cls(CSS, query)

    @classmethod
    def xpath(cls, query: str) -> Locator:
        return cls(XPATH, query)

    @classmethod
    def parse(cls, selector: str) -> Locator:
        """
        Build a Locator from a selector string.

        `#ident` -> id, `.ident` -> class name, `tag[name='x']` -> name,
        leading `/`, `./` or `(/` -> xpath, `<strategy>=` prefixes select
        that strategy explicitly, anything else is a CSS selector.
        """
        if selector is None or not str(selector).strip():
            raise ValueError("Selector cannot be null or empty")
        text = str(selector).strip()

        prefixed = _PREFIX_RE.match(text)
        if prefixed:
            return cls(prefixed.group(1), prefixed.group(2).strip())

        if text.startswith(("/", "./", "(/", "(./")):
            return cls(XPATH, text)
        if text.startswith("#") and _IDENT_RE.match(text[1:]):
            return cls(ID, text[1:])
        if text.startswith(".") and _IDENT_RE.match(text[1:]):
            return cls(CLASS_NAME, text[1:])
        name_attr = _NAME_ATTR_RE.match(text)
        if name_attr:
            return cls(NAME, name_attr.group(1))
        return cls(CSS, text)

    def __str__(self) -> str:
        return f"{self.strategy}={self.query}"


LocatorLike = Union[Locator, str]


def as_locator(value: LocatorLike) -> Locator:
    if isinstance(value, Locator):
        return value
    return Locator.parse(value)


@dataclass(frozen=True)
class Resolution:
    """Outcome of a successful LocatorSet resolution."""
    element: Any
    locator: Locator
    index: int
    match_count: int = 1


@dataclass(frozen=True)
class LocatorSet:
    """Ordered, non-empty sequence of equivalent locators for one target."""
    locators: Tuple[Locator, ...]
    name: Optional[str] = None
    stability: str = "Unknown"

    def __post_init__(self) -> None:
        locators = tuple(as_locator(loc) for loc in self.locators)
        if not locators:
            raise ValueError("LocatorSet requires at least one locator")
        object.__setattr__(self, "locators", locators)

    @classmethod
    def of(cls, *locators: LocatorLike, name: Optional[str] = None, stability: str = "Unknown") -> LocatorSet:
        return cls(tuple(as_locator(loc) for loc in locators), name=name, stability=stability)

    @property
    def primary(self) -> Locator:
        return self.locators[0]

    @property
    def label(self) -> str:
        """Name used in logs and errors."""
        return self.name or str(self.primary)

    def __iter__(self):
        return iter(self.locators)

    def __len__(self) -> int:
        return len(self.locators)

    def resolve(self, session: Session) -> Optional[Resolution]:
        """
        Return the first node of the first locator that matches anything.

        @return Resolution, or None when no locator matched
        @throws InvalidLocatorError if a locator is malformed
        """
        for index, locator in enumerate(self.locators):
            matches = session.find_all(locator)
            if matches:
                return Resolution(
                    element=matches[0],
                    locator=locator,
                    index=index,
                    match_count=len(matches),
                )
        return None

    def resolve_all(self, session: Session) -> Sequence[Any]:
        """Return every match of the first locator that matches anything."""
        for locator in self.locators:
            matches = session.find_all(locator)
            if matches:
                return list(matches)
        return []

    def probe(self, session: Session) -> List[LocatorAttempt]:
        """
        Try every locator and record what each one produced.

        Used for error reports; never raises for malformed locators.
        """
        attempts: List[LocatorAttempt] = []
        for locator in self.locators:
            try:
                count = len(session.find_all(locator))
                error = None if count else "no match"
            except InvalidLocatorError as e:
                error = f"{type(e).__name__}: {e}"
            attempts.append(LocatorAttempt(strategy=locator.strategy, query=locator.query, error=error))
        return attempts


TargetLike = Union[LocatorSet, Locator, str]


def as_locator_set(target: Union[LocatorSet, LocatorLike, Iterable[LocatorLike]]) -> LocatorSet:
    if isinstance(target, LocatorSet):
        return target
    if isinstance(target, (Locator, str)):
        return LocatorSet.of(target)
    return LocatorSet.of(*list(target))
