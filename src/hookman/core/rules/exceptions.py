"""Exceptions for trigger rule lexing and parsing."""

class RuleError(Exception):
    """Base class for all rule-related errors."""
    pass

class RuleLexError(RuleError):
    """Raised when a rule string cannot be tokenized."""
    def __init__(self, message: str, position: int):
        self.message = message
        self.position = position
        super().__init__(f"{message} at position {position}")

class RuleArgumentError(RuleError):
    """Raised when a literal is not a valid ``source.name`` reference."""
    def __init__(self, message: str, detail: str):
        self.message = message
        self.detail = detail
        super().__init__(f"{message}: {detail}")

class RuleSyntaxError(RuleError):
    """Raised when rule syntax is invalid.

    ``token`` is the text of the offending token (``<EOF>`` at end of input)
    and ``position`` its offset in the rule string. ``detail`` holds an
    already indented explanation, or the message of a nested error.
    """
    def __init__(self, message: str, token: str, position: int, detail: str | None = None):
        self.message = message
        self.token = token
        self.position = position
        self.detail = detail
        text = f"{message} (token: {token}, pos: {position})"
        if detail:
            text = f"{text}\n{detail}"
        super().__init__(text)

class RuleNestingError(RuleSyntaxError):
    """Raised when groups and not rules nest deeper than the parser allows.

    Reported as is, without the per-level group context.
    """
    pass
