"""
Tree-sitter-based code parsing module.

This module provides functionality to parse source code files using tree-sitter.
It handles file type detection and parsing operations, returning a syntax tree
representation of the source code together with the raw bytes it was parsed from.

The module uses tree-sitter parsers from the tree_sitter_language_pack package.
"""

from pathlib import Path
from typing import Tuple

from tree_sitter import Tree
from tree_sitter_language_pack import get_parser as get_ts_parser

from src.parser.file_types import FileTypes

FILE_TYPE_TO_LANG = {
    FileTypes.CSHARP: "csharp",
}


class ParseError(Exception):
    """Exception raised when parsing a file fails."""
    pass


class UnsupportedLanguageError(Exception):
    """Exception raised when a file's language is not supported."""
    pass


def parse_bytes(content: bytes, language: str) -> Tree:
    """Parse in-memory source with the tree-sitter grammar of `language`."""
    try:
        return get_ts_parser(language).parse(content)
    except Exception as e:
        raise ParseError(f"Failed to parse {language} source: {e}") from e


def get_parser(file: Path) -> Tuple[Tree, str, bytes]:
    """Get the tree-sitter parser for the file and parse it.

    Args:
        file: Path to the source file to parse.

    Returns:
        Tuple of (parsed Tree-sitter Tree, language string, file content).

    Raises:
        UnsupportedLanguageError: If the file type is not supported.
        ParseError: If the file cannot be read or parsed.
        FileNotFoundError: If the file does not exist.
    """
    if not file.exists():
        raise FileNotFoundError(f"File not found: {file}")

    file_type = FileTypes.from_path(file)
    lang = FILE_TYPE_TO_LANG.get(file_type)

    if lang is None:
        raise UnsupportedLanguageError(
            f"Unsupported file type for tree-sitter parsing: {file.suffix}"
        )

    try:
        content = file.read_bytes()
    except OSError as e:
        raise ParseError(f"Failed to read file {file}: {e}") from e

    return parse_bytes(content, lang), lang, content
