"""
Split a string of SQL code into the atomic statements it is made of.

Statement boundaries are decided by :mod:`sqlparse`, which already knows about
semicolons inside literals, quoted identifiers, comments and ``BEGIN..END``
blocks.  This module only shapes the pieces it returns.
"""
from __future__ import annotations

import typing as t

import sqlparse
from sqlparse import tokens as T

_TERMINATOR = ";"


class Splitter:
    """
    Configurable wrapper around :func:`sqlparse.parse`.

    Every option defaults to *False*, which produces the most portable output
    (no terminators, no comments, no surrounding blanks, no empty statements).
    With every option set to *True* the split is lossless::

        "".join(Splitter(**all_true).split(sql)) == sql
    """

    def __init__(
        self,
        *,
        keep_terminator: bool = False,
        keep_extra_spaces: bool = False,
        keep_empty_statements: bool = False,
        keep_comments: bool = False,
    ) -> None:
        self.keep_terminator = keep_terminator
        self.keep_extra_spaces = keep_extra_spaces
        self.keep_empty_statements = keep_empty_statements
        self.keep_comments = keep_comments

    def __repr__(self) -> str:
        opts = ", ".join(f"{k}={v!r}" for k, v in vars(self).items())
        return f"{type(self).__name__}({opts})"

    # --------------------------------------------------------------------- #
    # Public API
    # --------------------------------------------------------------------- #
    def split(self, sql: str) -> list[str]:
        """Return the statements found in *sql*, in textual order."""
        return [text for text, _ in self._pieces(sql)]

    def split_with_placeholders(self, sql: str) -> tuple[list[str], list[int]]:
        """
        Like :meth:`split`, but also return the number of bind placeholders
        (``?``, ``%s``, ``%(name)s``, ``:name``, ``$1`` ...) of each statement.
        """
        statements: list[str] = []
        counts: list[int] = []
        for text, placeholders in self._pieces(sql):
            statements.append(text)
            counts.append(placeholders)
        return statements, counts

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #
    def _pieces(self, sql: str) -> t.Iterator[tuple[str, int]]:
        consumed = 0
        for stmt in sqlparse.parse(sql):
            consumed += len(str(stmt))
            tokens = list(stmt.flatten())
            if not self.keep_empty_statements and _is_empty(tokens):
                continue
            placeholders = sum(1 for tok in tokens if tok.ttype in T.Name.Placeholder)
            yield self._render(tokens), placeholders

        # sqlparse drops a whitespace-only tail, put it back when nothing
        # is supposed to be lost.
        tail = sql[consumed:]
        if tail and self.keep_extra_spaces and self.keep_empty_statements:
            yield tail, 0

    def _render(self, tokens: list) -> str:
        if not self.keep_terminator:
            idx = _terminator_index(tokens)
            if idx is not None:
                tokens = tokens[:idx] + tokens[idx + 1:]

        parts: list[str] = []
        for tok in tokens:
            if tok.ttype in T.Comment and not self.keep_comments:
                # single-line comments swallow their newline; anything else
                # still has to keep its neighbours apart
                parts.append(tok.value[len(tok.value.rstrip("\r\n")):] or " ")
                continue
            parts.append(tok.value)

        text = "".join(parts)
        return text if self.keep_extra_spaces else text.strip()


def _is_meaningful(tok) -> bool:
    return not (tok.is_whitespace or tok.ttype in T.Comment)


def _terminator_index(tokens: list) -> int | None:
    for idx in range(len(tokens) - 1, -1, -1):
        tok = tokens[idx]
        if not _is_meaningful(tok):
            continue
        if tok.ttype in T.Punctuation and tok.value == _TERMINATOR:
            return idx
        return None
    return None


def _is_empty(tokens: list) -> bool:
    meaningful = [tok for tok in tokens if _is_meaningful(tok)]
    if not meaningful:
        return True
    return len(meaningful) == 1 and meaningful[0].value == _TERMINATOR


def split(sql: str) -> list[str]:
    """Split *sql* with the default (most portable) configuration."""
    return Splitter().split(sql)
