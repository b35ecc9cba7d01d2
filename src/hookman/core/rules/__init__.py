"""Trigger Rule Parser API."""

from hookman.core.logging import get_logger

from .arguments import ArgumentListParser, parse_argument
from .ast import AndRule, ArgumentReference, MatchRule, MatchType, NotRule, OrRule, ParameterSource, Rule
from .exceptions import RuleArgumentError, RuleError, RuleLexError, RuleNestingError, RuleSyntaxError
from .lexer import Lexer, Token, TokenType
from .parser import RuleParser

logger = get_logger(__name__)

def parse_rule(expression: str) -> Rule:
    """Parse a trigger rule expression into a rule tree."""
    try:
        rule = RuleParser(expression).parse()
    except RuleError as e:
        logger.info("Trigger rule rejected", error=e.message, position=getattr(e, "position", None))
        raise
    logger.debug("Trigger rule parsed", rule=type(rule).__name__)
    return rule

def parse_arguments(expression: str) -> list[ArgumentReference]:
    """Parse a comma-separated list of ``source.name`` literals."""
    try:
        arguments = ArgumentListParser(expression).parse()
    except RuleError as e:
        logger.info("Argument list rejected", error=e.message, position=getattr(e, "position", None))
        raise
    logger.debug("Argument list parsed", count=len(arguments))
    return arguments

__all__ = [
    "parse_rule",
    "parse_arguments",
    "parse_argument",
    "Rule",
    "MatchRule",
    "AndRule",
    "OrRule",
    "NotRule",
    "MatchType",
    "ArgumentReference",
    "ParameterSource",
    "Lexer",
    "Token",
    "TokenType",
    "RuleParser",
    "ArgumentListParser",
    "RuleError",
    "RuleLexError",
    "RuleArgumentError",
    "RuleSyntaxError",
    "RuleNestingError",
]
