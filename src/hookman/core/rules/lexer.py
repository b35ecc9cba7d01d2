"""Lexer for trigger rule expressions."""

from dataclasses import dataclass
from enum import Enum, auto

from .exceptions import RuleLexError

class TokenType(Enum):
    """Types of tokens in trigger rule expressions."""
    EOF = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()

    # Operators
    REGEX_EQ = auto()   # ~=
    STRING_EQ = auto()  # ==
    NOT = auto()        # !
    AND = auto()        # &&
    OR = auto()         # ||

    # Literals
    SINGLE_QUOTED = auto()
    DOUBLE_QUOTED = auto()

    # Functions
    SHA1 = auto()

LITERAL_TYPES = frozenset({TokenType.SINGLE_QUOTED, TokenType.DOUBLE_QUOTED})

PUNCTUATION = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
}

QUOTES = {
    "'": TokenType.SINGLE_QUOTED,
    '"': TokenType.DOUBLE_QUOTED,
}

# Checked in order: "!" must not shadow the two-character operators.
OPERATORS = (
    ("==", TokenType.STRING_EQ),
    ("~=", TokenType.REGEX_EQ),
    ("&&", TokenType.AND),
    ("||", TokenType.OR),
    ("!", TokenType.NOT),
)

SHA1_FUNCTION = "sha1"

@dataclass(frozen=True)
class Token:
    """A single token in the rule expression.

    For quoted literals ``value`` is the unescaped content without the
    delimiting quotes. The EOF token has an empty value.
    """
    type: TokenType
    value: str

    @property
    def is_literal(self) -> bool:
        return self.type in LITERAL_TYPES

class Lexer:
    """Tokenizes trigger rule strings.

    The lexer runs once over its input. Scanning halts at the first
    character that cannot start a token; the errors collected so far are
    returned alongside the tokens.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.tokens: list[Token] = []
        self.errors: list[RuleLexError] = []
        self.open_parentheses = 0

    def error(self, message: str) -> None:
        """Record a lexical error at the current position."""
        self.errors.append(RuleLexError(message, self.pos))

    def emit(self, token_type: TokenType, value: str = "") -> None:
        self.tokens.append(Token(token_type, value))

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def skip_whitespace(self) -> None:
        """Skip over whitespace characters."""
        while not self.at_end() and self.text[self.pos].isspace():
            self.pos += 1

    def _string(self) -> bool:
        """Scan a quoted literal, collapsing escaped delimiters."""
        quote = self.text[self.pos]
        escaped_quote = "\\" + quote
        self.pos += 1  # Skip opening quote

        chars: list[str] = []
        while not self.at_end():
            if self.text.startswith(escaped_quote, self.pos):
                chars.append(quote)
                self.pos += len(escaped_quote)
            elif self.text[self.pos] == quote:
                self.pos += 1  # Skip closing quote
                self.emit(QUOTES[quote], "".join(chars))
                return True
            else:
                chars.append(self.text[self.pos])
                self.pos += 1

        self.emit(TokenType.EOF)
        self.error("missing closing quotation mark")
        return False

    def next_token(self) -> bool:
        """Scan a single token.

        Returns:
            False once scanning is over, either because EOF was emitted or
            because an error stopped the scan.
        """
        self.skip_whitespace()

        if self.at_end():
            self.emit(TokenType.EOF)
            return False

        char = self.text[self.pos]

        if char in PUNCTUATION:
            token_type = PUNCTUATION[char]
            if token_type == TokenType.LPAREN:
                self.open_parentheses += 1
            elif token_type == TokenType.RPAREN:
                self.open_parentheses -= 1
            self.pos += 1
            self.emit(token_type, char)
            return True

        if char in QUOTES:
            return self._string()

        for symbol, token_type in OPERATORS:
            if self.text.startswith(symbol, self.pos):
                self.pos += len(symbol)
                self.emit(token_type, symbol)
                return True

        candidate = self.text[self.pos:self.pos + len(SHA1_FUNCTION)]
        if candidate.lower() == SHA1_FUNCTION:
            self.pos += len(SHA1_FUNCTION)
            self.emit(TokenType.SHA1, candidate)
            return True

        self.error(f"unexpected token '{char}'")
        return False

    def scan(self) -> tuple[list[Token], list[RuleLexError]]:
        """Tokenize the whole input.

        Returns:
            The tokens scanned and the lexical errors found, in order.
        """
        while self.next_token():
            pass

        if self.open_parentheses > 0:
            self.error("missing closing parenthesis")

        return self.tokens, self.errors

    def tokenize(self) -> list[Token]:
        """Tokenize the whole input, raising the first lexical error."""
        tokens, errors = self.scan()
        if errors:
            raise errors[0]
        return tokens
