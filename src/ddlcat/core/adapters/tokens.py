"""Token cursor over sqlglot tokens.

The statement reader walks DDL statements token by token instead of relying
on sqlglot's statement parser, which falls back to an opaque ``Command`` for
most of the DDL this project models (triggers, policies, roles, grants).
Expressions found inside statements are still handed to sqlglot's
expression parser through ``ddlcat.core.expressions``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import sqlglot
from sqlglot.errors import TokenError
from sqlglot.tokens import Token, TokenType

from ddlcat.core.errors import SqlParseError

_WORD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*$")
_PHRASE_RE = re.compile(r"^[A-Za-z_]+(\s+[A-Za-z_]+)+$")


def tokenize(sql: str, dialect: str) -> list[Token]:
    """Tokenize SQL text with the sqlglot tokenizer of the given dialect.

    sqlglot folds some keyword phrases (``PRIMARY KEY``, ``ORDER BY``) into a
    single token; those are split back into one token per word so the reader
    can match words uniformly.
    """
    try:
        tokens = sqlglot.tokenize(sql, read=dialect)
    except TokenError as exc:
        raise SqlParseError(str(exc)) from exc
    result: list[Token] = []
    for token in tokens:
        if is_string(token) or token.token_type == TokenType.IDENTIFIER:
            result.append(token)
            continue
        if not _PHRASE_RE.match(token.text):
            result.append(token)
            continue
        for match in re.finditer(r"\S+", token.text):
            result.append(
                Token(
                    TokenType.VAR,
                    match.group(),
                    line=token.line,
                    col=token.col,
                    start=token.start + match.start(),
                    end=token.start + match.end() - 1,
                )
            )
    return result


def is_word(token: Token) -> bool:
    """Return True for unquoted word tokens (keywords and bare identifiers)."""
    if token.token_type in (TokenType.IDENTIFIER,) or is_string(token):
        return False
    return bool(_WORD_RE.match(token.text))


def is_string(token: Token) -> bool:
    """Return True for any flavour of string literal token."""
    return token.token_type.name.endswith("STRING")


def is_name(token: Token) -> bool:
    """Return True for tokens usable as an object or column name."""
    return token.token_type == TokenType.IDENTIFIER or is_word(token)


def split_statements(sql: str, tokens: list[Token]) -> list[tuple[str, list[Token]]]:
    """Split a token stream on top-level semicolons.

    Returns:
        A list of ``(statement_sql, statement_tokens)`` pairs; empty statements
        are dropped.
    """
    statements: list[tuple[str, list[Token]]] = []
    current: list[Token] = []
    depth = 0
    for token in tokens:
        if token.token_type == TokenType.L_PAREN:
            depth += 1
        elif token.token_type == TokenType.R_PAREN and depth > 0:
            depth -= 1
        if token.token_type == TokenType.SEMICOLON and depth == 0:
            if current:
                statements.append((source_text(sql, current), current))
            current = []
            continue
        current.append(token)
    if current:
        statements.append((source_text(sql, current), current))
    return statements


def source_text(sql: str, tokens: list[Token]) -> str:
    """Return the exact source text spanned by a non-empty token run."""
    return sql[tokens[0].start : tokens[-1].end + 1]


@dataclass
class TokenCursor:
    """Forward-only cursor over the tokens of a single statement."""

    sql: str
    tokens: list[Token]
    pos: int = 0

    # inspection

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def peek(self, offset: int = 0) -> Token | None:
        index = self.pos + offset
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return None

    def word(self, offset: int = 0) -> str | None:
        """Upper-cased text of the token at ``offset`` if it is a bare word."""
        token = self.peek(offset)
        if token is None or not is_word(token):
            return None
        return token.text.upper()

    def at(self, *words: str) -> bool:
        """Return True if the next tokens are exactly the given words."""
        return all(self.word(i) == w for i, w in enumerate(words))

    def at_symbol(self, symbol: str) -> bool:
        token = self.peek()
        return token is not None and not is_string(token) and token.text == symbol

    # consumption

    def advance(self) -> Token:
        token = self.peek()
        if token is None:
            raise self.error("unexpected end of statement")
        self.pos += 1
        return token

    def accept(self, *words: str) -> bool:
        if self.at(*words):
            self.pos += len(words)
            return True
        return False

    def expect(self, *words: str) -> None:
        if not self.accept(*words):
            raise self.error(f"expected {' '.join(words)}")

    def accept_symbol(self, symbol: str) -> bool:
        if self.at_symbol(symbol):
            self.pos += 1
            return True
        return False

    def expect_symbol(self, symbol: str) -> None:
        if not self.accept_symbol(symbol):
            raise self.error(f"expected `{symbol}`")

    def identifier(self) -> str:
        """Consume a (possibly quoted) name and return it without quotes."""
        token = self.peek()
        if token is None or not is_name(token):
            raise self.error("expected an identifier")
        self.pos += 1
        return token.text

    def qualified_name(self) -> list[str]:
        """Consume a dotted name and return its parts."""
        parts = [self.identifier()]
        while self.at_symbol(".") and self.peek(1) is not None and is_name(self.peek(1)):
            self.pos += 1
            parts.append(self.identifier())
        return parts

    def string(self) -> str:
        token = self.peek()
        if token is None or not is_string(token):
            raise self.error("expected a string literal")
        self.pos += 1
        return token.text

    def integer(self) -> int:
        token = self.advance()
        try:
            return int(token.text)
        except ValueError as exc:
            raise self.error(f"expected an integer, found `{token.text}`") from exc

    def parenthesized(self) -> list[Token]:
        """Consume ``( ... )`` and return the tokens between the parentheses."""
        self.expect_symbol("(")
        start = self.pos
        depth = 1
        while True:
            token = self.advance()
            if token.token_type == TokenType.L_PAREN:
                depth += 1
            elif token.token_type == TokenType.R_PAREN:
                depth -= 1
                if depth == 0:
                    return self.tokens[start : self.pos - 1]

    def until(self, *stop_words: str, stop_symbols: tuple[str, ...] = ()) -> list[Token]:
        """Consume tokens up to (not including) a top-level stop word or symbol."""
        start = self.pos
        depth = 0
        while not self.at_end():
            token = self.peek()
            if depth == 0 and (
                (is_word(token) and token.text.upper() in stop_words)
                or (not is_string(token) and token.text in stop_symbols)
            ):
                break
            if token.token_type == TokenType.L_PAREN:
                depth += 1
            elif token.token_type == TokenType.R_PAREN:
                depth -= 1
            self.pos += 1
        return self.tokens[start : self.pos]

    def rest(self) -> list[Token]:
        remaining = self.tokens[self.pos :]
        self.pos = len(self.tokens)
        return remaining

    def text(self, tokens: list[Token]) -> str:
        return source_text(self.sql, tokens) if tokens else ""

    def error(self, message: str) -> SqlParseError:
        token = self.peek()
        where = f" near `{token.text}`" if token is not None else ""
        return SqlParseError(f"{message}{where} in `{self.statement_text()}`")

    def statement_text(self) -> str:
        return self.text(self.tokens)


def split_commas(tokens: list[Token]) -> list[list[Token]]:
    """Split a token run on top-level commas, dropping empty parts."""
    parts: list[list[Token]] = []
    current: list[Token] = []
    depth = 0
    for token in tokens:
        if token.token_type == TokenType.L_PAREN:
            depth += 1
        elif token.token_type == TokenType.R_PAREN:
            depth -= 1
        if token.token_type == TokenType.COMMA and depth == 0:
            if current:
                parts.append(current)
            current = []
            continue
        current.append(token)
    if current:
        parts.append(current)
    return parts
