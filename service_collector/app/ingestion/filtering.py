"""
Metric family filtering for scraped Prometheus text.

Each container may declare drop rules in its ``prometheus.auto.metrics.drop``
label. A rule containing any regex metacharacter is compiled as a regular
expression and matched with search semantics, so ``go_.*`` drops every family
whose name contains ``go_`` followed by anything. Every other rule is an exact
family name. A rule that looks like a regex but fails to compile is used as an
exact name instead.

Names with a literal ``.`` are classified as regexes too; ``.`` matches any
character, so such a rule can drop more than the one family it names.
"""

import re
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Pattern, Sequence

from shared.logging import get_logger

REGEX_METACHARACTERS = frozenset(".*+?^$[]{}()|\\")

HEADER_PREFIXES = ("# HELP ", "# TYPE ")

logger = get_logger("collector.filtering")


def looks_like_regex(rule: str) -> bool:
    """True when the rule contains any regex metacharacter."""
    return any(char in REGEX_METACHARACTERS for char in rule)


@dataclass(frozen=True)
class DropRules:
    """Drop rules split into exact names and compiled patterns."""
    exact: FrozenSet[str] = frozenset()
    patterns: Sequence[Pattern[str]] = field(default_factory=tuple)

    @classmethod
    def compile(cls, rules: Iterable[str]) -> "DropRules":
        exact = set()
        patterns: List[Pattern[str]] = []
        for rule in rules:
            if looks_like_regex(rule):
                try:
                    patterns.append(re.compile(rule))
                    continue
                except re.error as exc:
                    logger.warning(
                        "Invalid regex drop rule, using exact match",
                        rule=rule,
                        error=str(exc),
                    )
            exact.add(rule)
        return cls(exact=frozenset(exact), patterns=tuple(patterns))

    def __bool__(self) -> bool:
        return bool(self.exact or self.patterns)

    def matches(self, name: str) -> bool:
        if name in self.exact:
            return True
        return any(pattern.search(name) for pattern in self.patterns)


def sample_name(line: str) -> str:
    """Family name of a sample line: everything before the first space or ``{``."""
    end = len(line)
    for delimiter in (" ", "{"):
        index = line.find(delimiter)
        if index != -1 and index < end:
            end = index
    return line[:end]


def filter_metrics(metrics: str, drop_rules: Iterable[str]) -> str:
    """Remove the metric families named by ``drop_rules`` from ``metrics``.

    HELP and TYPE lines open a family; when the family is dropped, its
    comments, blank lines and samples are dropped until the next HELP or TYPE
    line. Sample lines are also checked by their own name, so families
    without headers can be dropped as well. A trailing newline survives when
    any line does.
    """
    rules = DropRules.compile(drop_rules)
    if not rules:
        return metrics

    lines = metrics.split("\n")
    trailing_newline = metrics.endswith("\n")
    if trailing_newline:
        lines.pop()

    kept: List[str] = []
    skip = False

    for line in lines:
        if line.startswith(HEADER_PREFIXES):
            parts = line.split()
            if len(parts) < 3:
                # Malformed header: state unchanged, line kept
                kept.append(line)
                continue
            skip = rules.matches(parts[2])
            if not skip:
                kept.append(line)
            continue

        if line.startswith("#") or not line.strip():
            if not skip:
                kept.append(line)
            continue

        if skip or rules.matches(sample_name(line)):
            continue
        kept.append(line)

    filtered = "\n".join(kept)
    if trailing_newline and kept:
        filtered += "\n"
    return filtered
