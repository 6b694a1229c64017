"""Class identity matching for class-bound removals.

Four modes:
- strict + case-sensitive   → exact equality
- strict + case-insensitive → equality after casefolding
- loose + case-sensitive    → target is a substring of the observed name
- loose + case-insensitive  → casefolded substring test
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class MatchMode(Enum):
    """Comparison mode for class names."""

    EXACT = "exact"  # strict, case-sensitive
    EXACT_INSENSITIVE = "exact_insensitive"  # strict, casefolded
    CONTAINS = "contains"  # substring, case-sensitive
    CONTAINS_INSENSITIVE = "contains_insensitive"  # substring, casefolded

    @classmethod
    def from_flags(cls, strict: bool, case_sensitive: bool) -> MatchMode:
        if strict:
            return cls.EXACT if case_sensitive else cls.EXACT_INSENSITIVE
        return cls.CONTAINS if case_sensitive else cls.CONTAINS_INSENSITIVE

    @property
    def strict(self) -> bool:
        return self in (MatchMode.EXACT, MatchMode.EXACT_INSENSITIVE)

    @property
    def case_sensitive(self) -> bool:
        return self in (MatchMode.EXACT, MatchMode.CONTAINS)


def matches(observed: str, target: str, strict: bool, case_sensitive: bool) -> bool:
    """Compare an observed class name against a target name.

    Args:
        observed: Class name of the callback's owner
        target: Class name being searched for
        strict: Require equality instead of substring containment
        case_sensitive: Compare without casefolding

    Returns:
        True if the names match under the chosen mode

    Examples:
        >>> matches("Foo_Bar", "foo_bar", strict=True, case_sensitive=False)
        True
        >>> matches("Foo_Bar", "foo_bar", strict=True, case_sensitive=True)
        False
        >>> matches("My_Foo_Bar", "Foo_Bar", strict=False, case_sensitive=True)
        True
    """
    if not case_sensitive:
        observed = observed.casefold()
        target = target.casefold()

    if strict:
        return observed == target
    return target in observed


def owner_identity(owner: Any, qualified: bool = False) -> str:
    """Resolve the class name of a callback owner.

    A class (e.g. the receiver of a classmethod) is named directly, an
    instance by its type.

    Args:
        owner: Instance or class a method is bound to
        qualified: Return ``module.QualName`` instead of the bare name
    """
    cls = owner if isinstance(owner, type) else type(owner)
    if qualified:
        return f"{cls.__module__}.{cls.__qualname__}"
    return cls.__name__


@dataclass(frozen=True)
class ClassIdentityMatcher:
    """Matcher with fixed strictness and case sensitivity.

    Attributes:
        strict: Require equality instead of substring containment
        case_sensitive: Compare without casefolding
    """

    strict: bool = False
    case_sensitive: bool = False

    @classmethod
    def for_mode(cls, mode: MatchMode) -> ClassIdentityMatcher:
        return cls(strict=mode.strict, case_sensitive=mode.case_sensitive)

    @property
    def mode(self) -> MatchMode:
        return MatchMode.from_flags(self.strict, self.case_sensitive)

    def matches(self, observed: str, target: str) -> bool:
        return matches(observed, target, self.strict, self.case_sensitive)

    def matches_owner(self, owner: Any, target: str) -> bool:
        """Check whether a callback owner's class matches the target name.

        Args:
            owner: Instance or class a method is bound to
            target: Class name being searched for; a dotted name is compared
                against the owner's module-qualified name

        Returns:
            True if the owner's class name matches
        """
        observed = owner_identity(owner, qualified="." in target)
        result = self.matches(observed, target)
        logger.debug("Class match %s vs %s (%s): %s", observed, target, self.mode.value, result)
        return result
