"""Parser for trigger rule expressions."""

from .ast import AndRule, ArgumentReference, MatchRule, MatchType, NotRule, OrRule, ParameterSource, Rule
from .exceptions import RuleArgumentError, RuleNestingError, RuleSyntaxError
from .lexer import LITERAL_TYPES, Lexer, Token, TokenType

EOF_MARKER = "<EOF>"

# Deeper nesting is rejected before Python's recursion limit is reached
MAX_NESTING_DEPTH = 100

# Tokens that may begin an operand: a match rule, a group or a not rule
OPERAND_START_TYPES = LITERAL_TYPES | {TokenType.LPAREN, TokenType.NOT}

MATCH_VALUE = (LITERAL_TYPES, TokenType.STRING_EQ, LITERAL_TYPES)
MATCH_REGEX = (LITERAL_TYPES, TokenType.REGEX_EQ, LITERAL_TYPES)
MATCH_HASH_SHA1 = (
    LITERAL_TYPES, TokenType.STRING_EQ, TokenType.SHA1, TokenType.LPAREN,
    LITERAL_TYPES, TokenType.COMMA, LITERAL_TYPES, TokenType.RPAREN,
)
NOT_GROUP = (TokenType.NOT, TokenType.LPAREN)


def indent(depth: int) -> str:
    return "\t" * depth


class TokenParser:
    """Token cursor and error reporting shared by the rule grammars."""

    def __init__(self, text: str):
        self.text = text
        self.tokens: list[Token] = []
        self.position = 0

    def lex(self) -> None:
        """Tokenize the input, raising the first lexical error."""
        self.tokens = Lexer(self.text).tokenize()
        self.position = 0

    def has_types(self, *expected: TokenType | frozenset[TokenType]) -> bool:
        """Check whether the tokens at the cursor match a sequence of types.

        Each element is either a single token type or a set of acceptable
        types.
        """
        if self.position + len(expected) > len(self.tokens):
            return False

        for offset, accepted in enumerate(expected):
            token_type = self.tokens[self.position + offset].type
            if isinstance(accepted, frozenset):
                if token_type not in accepted:
                    return False
            elif token_type != accepted:
                return False
        return True

    def offset_of(self, index: int) -> int:
        """Offset of a token, reconstructed from the lengths of the tokens before it."""
        return sum(len(token.value) for token in self.tokens[:index])

    def syntax_error(
        self,
        message: str,
        index: int,
        detail: str | None = None,
        error_class: type[RuleSyntaxError] = RuleSyntaxError,
    ) -> RuleSyntaxError:
        """Build a syntax error pointing at the token at ``index``."""
        token = self.tokens[index]
        value = EOF_MARKER if token.type == TokenType.EOF else token.value
        return error_class(message, value, self.offset_of(index), detail)

    def argument_at(self, index: int, depth: int) -> ArgumentReference:
        """Parse the literal at ``index`` as a ``source.name`` reference."""
        try:
            return ArgumentReference.parse(self.tokens[index].value)
        except RuleArgumentError as e:
            raise self.syntax_error(e.message, index, indent(depth) + e.detail) from e


class RuleParser(TokenParser):
    """Recursive descent parser for trigger rule expressions.

    Each nesting level (a group or a not rule) is parsed by its own call of
    ``_parse_rule``. Within a level, ``&&`` binds tighter than ``||``: a run
    of ``&&`` operands is closed into a single and rule as soon as ``||``
    follows it.
    """

    def parse(self) -> Rule:
        """Parse the entire expression."""
        self.lex()
        return self._parse_rule(1)

    def _parse_rule(self, depth: int) -> Rule:
        if depth > MAX_NESTING_DEPTH:
            raise self.syntax_error(
                "expression nested too deeply",
                self.position,
                indent(1) + f"groups and not rules may nest at most {MAX_NESTING_DEPTH} levels",
                error_class=RuleNestingError,
            )

        alternatives: list[Rule] = []
        conjuncts: list[Rule] = []
        expecting_rule = False

        while True:
            token = self.tokens[self.position]

            if token.type in (TokenType.AND, TokenType.OR):
                if not conjuncts or expecting_rule:
                    raise self.syntax_error("unexpected token", self.position)

                if token.type == TokenType.OR:
                    alternatives.append(self._join(AndRule, conjuncts))
                    conjuncts = []

                expecting_rule = True
                self.position += 1
                continue

            if token.type in OPERAND_START_TYPES:
                if conjuncts and not expecting_rule:
                    raise self.syntax_error("unexpected token", self.position)

                operand = self._parse_operand(depth)
                if operand is None:
                    raise self.syntax_error("unexpected token", self.position)

                conjuncts.append(operand)
                expecting_rule = False
                continue

            if token.type == TokenType.RPAREN and depth > 1:
                end = self.position
                self.position += 1
                break

            if token.type == TokenType.EOF and depth == 1:
                end = self.position
                break

            raise self.syntax_error("unexpected token", self.position)

        if not conjuncts and not alternatives:
            raise self.syntax_error("invalid rule", end)

        if expecting_rule:
            raise self.syntax_error("expected valid rule", end)

        alternatives.append(self._join(AndRule, conjuncts))
        return self._join(OrRule, alternatives)

    @staticmethod
    def _join(node_type: type[AndRule] | type[OrRule], rules: list[Rule]) -> Rule:
        """Combine a run of operands; a single operand is returned unwrapped."""
        if len(rules) == 1:
            return rules[0]
        return node_type(tuple(rules))

    def _parse_operand(self, depth: int) -> Rule | None:
        """Parse the operand starting at the cursor, if any."""
        start = self.position

        if self.has_types(*NOT_GROUP):
            self.position += len(NOT_GROUP)
            try:
                rule = self._parse_rule(depth + 1)
            except RuleNestingError:
                raise
            except RuleSyntaxError as e:
                raise self.syntax_error("error parsing not rule", start, indent(depth) + str(e)) from e
            return NotRule(rule)

        if self.has_types(*MATCH_VALUE):
            parameter = self.argument_at(start, depth)
            self.position += len(MATCH_VALUE)
            return MatchRule(MatchType.VALUE, parameter, value=self.tokens[start + 2].value)

        if self.has_types(*MATCH_REGEX):
            parameter = self.argument_at(start, depth)
            self.position += len(MATCH_REGEX)
            return MatchRule(MatchType.REGEX, parameter, regex=self.tokens[start + 2].value)

        if self.has_types(*MATCH_HASH_SHA1):
            if not self._is_payload_target(self.tokens[start + 4].value):
                raise self.syntax_error(
                    "invalid sha1 target", start + 4, indent(depth) + "sha1 target must be payload"
                )
            parameter = self.argument_at(start, depth)
            self.position += len(MATCH_HASH_SHA1)
            return MatchRule(MatchType.HASH_SHA1, parameter, secret=self.tokens[start + 6].value)

        if self.has_types(TokenType.LPAREN):
            self.position += 1
            try:
                return self._parse_rule(depth + 1)
            except RuleNestingError:
                raise
            except RuleSyntaxError as e:
                raise self.syntax_error(
                    "error parsing expression group", start, indent(depth) + str(e)
                ) from e

        return None

    @staticmethod
    def _is_payload_target(target: str) -> bool:
        """Check that a sha1 call hashes the payload: ``payload`` or ``payload.<name>``."""
        if target == ParameterSource.PAYLOAD.value:
            return True
        try:
            return ArgumentReference.parse(target).source is ParameterSource.PAYLOAD
        except RuleArgumentError:
            return False
