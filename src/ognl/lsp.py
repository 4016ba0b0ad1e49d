"""Minimal LSP server for OGNL expressions, diagnostics only."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import unquote, urlparse

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from ognl import __version__
from ognl.config import ParserOptions, load_options
from ognl.errors import ConfigError
from ognl.parser import parse

logger = logging.getLogger(__name__)

server = LanguageServer("ognl-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full)


def _options_for(uri: str) -> ParserOptions:
    """Parser limits from an ognl.toml beside the document, if any."""
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return ParserOptions()
    directory = Path(unquote(parsed.path)).parent
    try:
        return load_options(None, directory)
    except ConfigError as exc:
        logger.warning("ignoring invalid configuration in %s: %s", directory, exc)
        return ParserOptions()


def _validate(ls: LanguageServer, uri: str, options: ParserOptions | None = None) -> None:
    """Parse the document and publish its diagnostics."""
    doc = ls.workspace.get_text_document(uri)
    source = doc.source
    filename = uri.rsplit("/", 1)[-1] if "/" in uri else uri
    if options is None:
        options = _options_for(uri)

    result = parse(source, filename, options)
    logger.debug("%s: %d diagnostic(s)", filename, len(result.diagnostics))

    diagnostics: list[Diagnostic] = []
    for diag in result.diagnostics:
        line = diag.position.line - 1
        col = diag.position.column - 1
        diagnostics.append(
            Diagnostic(
                range=Range(
                    start=Position(line=line, character=col),
                    end=Position(line=line, character=col + 1),
                ),
                message=diag.message,
                severity=DiagnosticSeverity.Error,
                source="ognl",
            )
        )

    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    server.start_io()
