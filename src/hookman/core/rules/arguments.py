"""Parsing of parameter references and comma-separated argument lists.

Argument lists name the request values handed to a hook command, e.g.::

    "payload.head_commit.id", 'header.X-Request-Id'
"""

from .ast import ArgumentReference
from .lexer import TokenType
from .parser import TokenParser


def parse_argument(literal: str) -> ArgumentReference:
    """Parse a single ``source.name`` literal.

    Raises:
        RuleArgumentError: If the literal is not a valid reference.
    """
    return ArgumentReference.parse(literal)


class ArgumentListParser(TokenParser):
    """Parser for ``literal (, literal)*`` argument lists."""

    def parse(self) -> list[ArgumentReference]:
        """Parse the entire argument list."""
        self.lex()

        arguments: list[ArgumentReference] = []
        expecting_argument = True

        while True:
            token = self.tokens[self.position]

            if token.is_literal:
                if not expecting_argument:
                    raise self.syntax_error("expected comma", self.position)
                arguments.append(self.argument_at(self.position, 1))
                expecting_argument = False
            elif token.type == TokenType.COMMA:
                if expecting_argument:
                    raise self.syntax_error("unexpected token", self.position)
                expecting_argument = True
            elif token.type == TokenType.EOF:
                break
            else:
                raise self.syntax_error("unexpected token", self.position)

            self.position += 1

        if expecting_argument:
            raise self.syntax_error("expected argument", self.position)

        return arguments
