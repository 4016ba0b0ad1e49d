"""Diagnostic records and error types with formatted source context."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ognl.tokens import Position


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A problem found in the source, reported as a value."""

    message: str
    position: Position

    @property
    def kind(self) -> str:
        return "error"

    def format(self, source: str, filename: str = "<expression>") -> str:
        lines = source.splitlines(keepends=True)
        line_idx = self.position.line - 1
        col = self.position.column

        # Build the source line (strip trailing newline for display)
        if 0 <= line_idx < len(lines):
            source_line = lines[line_idx].rstrip("\n").rstrip("\r")
        else:
            source_line = ""

        # Underline at least one char, but stay within the line
        underline_len = max(1, min(2, len(source_line) - col + 1))

        pad = " " * (col - 1)
        carets = "^" * underline_len

        line_num = str(self.position.line)
        gutter_width = len(line_num) + 1

        blank_gutter = " " * gutter_width + "|"
        line_gutter = f"{line_num:>{gutter_width - 1}} |"

        return (
            f"{self.kind}: {self.message}\n"
            f"{' ' * gutter_width}--> {filename}:{self.position.line}:{col}\n"
            f"{blank_gutter}\n"
            f"{line_gutter} {source_line}\n"
            f"{blank_gutter} {pad}{carets}"
        )

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class LexError(Diagnostic):
    """Malformed literal, bad escape, or stray character."""

    @property
    def kind(self) -> str:
        return "lexical error"


@dataclass(frozen=True, slots=True)
class ParseError(Diagnostic):
    """Unexpected token, unbalanced bracket, or exhausted parse budget."""

    @property
    def kind(self) -> str:
        return "syntax error"


class OgnlSyntaxError(Exception):
    """Raised by the strict entry points when an expression has diagnostics."""

    def __init__(
        self,
        diagnostics: Iterable[Diagnostic],
        source: str,
        filename: str = "<expression>",
    ) -> None:
        self.diagnostics = tuple(diagnostics)
        self.source = source
        self.filename = filename
        super().__init__(self.format())

    def format(self) -> str:
        return "\n".join(d.format(self.source, self.filename) for d in self.diagnostics)


class ConfigError(Exception):
    """Raised when an ognl.toml file holds an invalid setting."""
