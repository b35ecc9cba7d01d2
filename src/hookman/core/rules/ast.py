"""Rule tree nodes produced by the trigger rule parser.

Nodes are immutable. ``to_dict`` renders a node in the layout used by
webhook hook definitions, e.g. ``{"and": [{"match": {...}}, ...]}``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .exceptions import RuleArgumentError

class ParameterSource(str, Enum):
    """Where a runtime parameter value is read from."""
    HEADER = "header"
    PAYLOAD = "payload"
    QUERY = "query"
    STRING = "string"

class MatchType(str, Enum):
    """Kinds of match rules."""
    VALUE = "value"
    REGEX = "regex"
    HASH_SHA1 = "payload-hash-sha1"

# Payload field carried by each match type
MATCH_FIELDS = {
    MatchType.VALUE: "value",
    MatchType.REGEX: "regex",
    MatchType.HASH_SHA1: "secret",
}

@dataclass(frozen=True)
class ArgumentReference:
    """A ``source.name`` reference to a runtime parameter (e.g. header.X-Signature)."""
    source: ParameterSource
    name: str

    @classmethod
    def parse(cls, literal: str) -> "ArgumentReference":
        """Parse a ``source.name`` literal, splitting on the first dot.

        Raises:
            RuleArgumentError: If the literal has no dot, an unknown source
                or an empty name.
        """
        source, dot, name = literal.partition(".")

        if not dot:
            raise RuleArgumentError(
                "invalid argument format",
                "argument literal must be in format: paramsource.param.name.path",
            )

        try:
            parameter_source = ParameterSource(source)
        except ValueError:
            sources = ", ".join(s.value for s in ParameterSource)
            raise RuleArgumentError(
                "invalid parameter source",
                f"parameter source must be one of [{sources}]",
            ) from None

        if not name:
            raise RuleArgumentError("invalid parameter name", "parameter name cannot be blank")

        return cls(parameter_source, name)

    def to_dict(self) -> dict[str, str]:
        return {"source": self.source.value, "name": self.name}

    def __str__(self) -> str:
        return f"{self.source.value}.{self.name}"

@dataclass(frozen=True)
class Rule:
    """Base class for all rule nodes."""

    def to_dict(self) -> dict[str, Any]:
        raise NotImplementedError

@dataclass(frozen=True)
class MatchRule(Rule):
    """Leaf rule comparing a parameter with a value, a regex or a keyed hash.

    Exactly one of ``value``, ``regex`` and ``secret`` is set, the one
    matching ``type``.
    """
    type: MatchType
    parameter: ArgumentReference
    value: str | None = None
    regex: str | None = None
    secret: str | None = None

    def __post_init__(self) -> None:
        expected = MATCH_FIELDS[self.type]
        for field_name in MATCH_FIELDS.values():
            is_set = getattr(self, field_name) is not None
            if is_set != (field_name == expected):
                raise ValueError(f"{self.type.value} match rule requires only '{expected}'")

    @property
    def argument(self) -> str:
        """The value, regex or secret this rule matches against."""
        return getattr(self, MATCH_FIELDS[self.type])

    def to_dict(self) -> dict[str, Any]:
        return {
            "match": {
                "type": self.type.value,
                MATCH_FIELDS[self.type]: self.argument,
                "parameter": self.parameter.to_dict(),
            }
        }

@dataclass(frozen=True)
class AndRule(Rule):
    """Conjunction of two or more rules."""
    rules: tuple[Rule, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", tuple(self.rules))
        if len(self.rules) < 2:
            raise ValueError("and rule requires at least two rules")

    def to_dict(self) -> dict[str, Any]:
        return {"and": [rule.to_dict() for rule in self.rules]}

@dataclass(frozen=True)
class OrRule(Rule):
    """Disjunction of two or more rules."""
    rules: tuple[Rule, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", tuple(self.rules))
        if len(self.rules) < 2:
            raise ValueError("or rule requires at least two rules")

    def to_dict(self) -> dict[str, Any]:
        return {"or": [rule.to_dict() for rule in self.rules]}

@dataclass(frozen=True)
class NotRule(Rule):
    """Negation of a rule."""
    rule: Rule

    def to_dict(self) -> dict[str, Any]:
        return {"not": self.rule.to_dict()}
