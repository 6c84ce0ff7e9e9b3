"""
Immutable registry of the rules available to the engine.

The registry is built once at startup from an explicit tuple of rule
classes. Narrowing it (by id, category or configuration) returns a new
registry; nothing is ever registered into a shared global.

Layout:
    bugvet/rules/
    ├── literals/      regexp, template and time-layout literals
    ├── stdlib/        misuse of encoding/binary and time.Sleep
    └── concurrency/   sync.WaitGroup misuse and spinning loops
"""

import logging
from collections.abc import Iterable, Iterator
from types import MappingProxyType
from typing import TYPE_CHECKING

from ..errors import UnknownRuleError
from ..syntax.nodes import NODE_TYPES, Node
from .base import BaseRule
from .concurrency.empty_loop import EmptyInfiniteLoopRule
from .concurrency.waitgroup_add import WaitGroupAddRaceRule
from .concurrency.waitgroup_copy import WaitGroupCopyRule
from .literals.regexp import InvalidRegexRule
from .literals.template import InvalidTemplateRule
from .literals.time_layout import InvalidTimeLayoutRule
from .stdlib.binary_write import BinaryWriteLayoutRule
from .stdlib.sleep_constant import SleepConstantRule

if TYPE_CHECKING:
    from .config import RuleEngineConfig

logger = logging.getLogger(__name__)

DEFAULT_RULE_CLASSES: tuple[type[BaseRule], ...] = (
    InvalidRegexRule,
    InvalidTemplateRule,
    InvalidTimeLayoutRule,
    BinaryWriteLayoutRule,
    SleepConstantRule,
    WaitGroupAddRaceRule,
    WaitGroupCopyRule,
    EmptyInfiniteLoopRule,
)


class RuleRegistry:
    """A fixed set of rule instances, indexed by id and by node type."""

    def __init__(self, rules: Iterable[BaseRule] = ()):
        by_id: dict[str, BaseRule] = {}
        for rule in rules:
            if rule.rule_id in by_id:
                raise ValueError(f"Duplicate rule id: {rule.rule_id}")
            by_id[rule.rule_id] = rule
        self._rules = MappingProxyType(by_id)

        dispatch: dict[type[Node], tuple[BaseRule, ...]] = {}
        for node_class in NODE_TYPES.values():
            matching = tuple(
                r for r in by_id.values() if issubclass(node_class, r.node_types)
            )
            if matching:
                dispatch[node_class] = matching
        self._dispatch = MappingProxyType(dispatch)

    @classmethod
    def from_classes(cls, rule_classes: Iterable[type[BaseRule]]) -> "RuleRegistry":
        """Instantiate each rule class once and register it."""
        return cls(rule_class() for rule_class in rule_classes)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[BaseRule]:
        return iter(self._rules.values())

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __repr__(self) -> str:
        return f"RuleRegistry({', '.join(self._rules)})"

    @property
    def rule_ids(self) -> list[str]:
        return list(self._rules)

    @property
    def categories(self) -> list[str]:
        """Categories present, in registration order."""
        return list(dict.fromkeys(r.category for r in self))

    def get(self, rule_id: str) -> BaseRule | None:
        """Get a rule by its ID, or None if not registered."""
        return self._rules.get(rule_id)

    def rules_for(self, node: Node) -> tuple[BaseRule, ...]:
        """Rules dispatched on ``node``'s type."""
        return self._dispatch.get(type(node), ())

    def select(
        self,
        rule_ids: Iterable[str] | None = None,
        categories: Iterable[str] | None = None,
    ) -> "RuleRegistry":
        """Narrow to the given rule ids and/or categories.

        A rule is kept if it matches either filter. With no filters the
        registry is returned unchanged.

        Raises:
            UnknownRuleError: If a requested rule id is not registered.
        """
        rule_ids = list(rule_ids or ())
        categories = list(categories or ())
        if not rule_ids and not categories:
            return self

        unknown = [rid for rid in rule_ids if rid not in self._rules]
        if unknown:
            raise UnknownRuleError(unknown, available=self.rule_ids)
        for category in categories:
            if category not in self.categories:
                logger.warning(f"No rules in category {category!r}")

        wanted_ids = set(rule_ids)
        wanted_categories = set(categories)
        return RuleRegistry(
            r
            for r in self
            if r.rule_id in wanted_ids or r.category in wanted_categories
        )

    def without_disabled(self, config: "RuleEngineConfig") -> "RuleRegistry":
        """Drop rules the configuration disables."""
        kept = []
        for rule in self:
            if config.is_rule_enabled(rule.rule_id, rule.category):
                kept.append(rule)
            else:
                logger.debug(f"Rule {rule.rule_id} is disabled in config, skipping")
        return RuleRegistry(kept)


def default_registry() -> RuleRegistry:
    """Registry holding every built-in rule."""
    return RuleRegistry.from_classes(DEFAULT_RULE_CLASSES)
