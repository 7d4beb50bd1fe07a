"""
Translation file parsing and serialization.

Reads JSON, YAML and JavaScript/TypeScript locale modules into plain
translation trees and writes trees back in the same format.
"""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import yaml

from translation_watcher_ai.errors import ParseError
from translation_watcher_ai.tree import TranslationTree


class FileFormat(str, Enum):
    """Supported translation file formats."""

    JSON = "json"
    YAML = "yaml"
    JS = "js"
    TS = "ts"


# Extension -> format
FORMAT_BY_EXTENSION = {
    ".json": FileFormat.JSON,
    ".yaml": FileFormat.YAML,
    ".yml": FileFormat.YAML,
    ".js": FileFormat.JS,
    ".ts": FileFormat.TS,
}


@dataclass
class ParsedFile:
    """A parsed translation file."""

    tree: TranslationTree
    format: FileFormat
    raw_content: str
    path: Path


class TranslationParser:
    """
    Parses translation files into trees and serializes trees back.

    In lenient mode (the default) malformed JSON is retried once after fixing
    trailing commas, comments, single quotes and unquoted keys.
    """

    def __init__(self, strict: bool = False, indent: int = 2):
        """
        Initialize parser.

        Args:
            strict: Disable the lenient JSON repair pass.
            indent: Indentation used by :meth:`stringify`.
        """
        self.strict = strict
        self.indent = indent

    def detect_format(self, file_path: str | Path) -> FileFormat:
        """Detect the file format from its extension."""
        extension = Path(file_path).suffix.lower()
        try:
            return FORMAT_BY_EXTENSION[extension]
        except KeyError:
            raise ParseError(f"Unsupported file extension: {extension}") from None

    async def parse_file(self, file_path: str | Path) -> ParsedFile:
        """
        Read and parse a translation file.

        Raises:
            ParseError: If the file cannot be read or parsed.
        """
        path = Path(file_path)
        try:
            content = await asyncio.to_thread(path.read_text, encoding="utf-8")
            file_format = self.detect_format(path)
            tree = self.parse_content(content, file_format)
        except (OSError, ParseError) as e:
            raise ParseError(f"Failed to parse file {path}: {e}") from e

        return ParsedFile(tree=tree, format=file_format, raw_content=content, path=path)

    def parse_content(self, content: str, file_format: FileFormat | str) -> TranslationTree:
        """Parse a content string in the given format."""
        file_format = FileFormat(file_format)

        if file_format == FileFormat.JSON:
            return self._parse_json(content)
        if file_format == FileFormat.YAML:
            return self._parse_yaml(content)
        return self._parse_javascript(content)

    def stringify(self, tree: TranslationTree, file_format: FileFormat | str) -> str:
        """Serialize a tree in the given format."""
        file_format = FileFormat(file_format)
        body = json.dumps(tree, indent=self.indent, ensure_ascii=False)

        if file_format == FileFormat.JSON:
            return body + "\n"
        if file_format == FileFormat.YAML:
            return yaml.safe_dump(
                tree, allow_unicode=True, sort_keys=False, indent=self.indent
            )
        if file_format == FileFormat.JS:
            return f"module.exports = {body};\n"
        return f"export default {body};\n"

    async def write_file(
        self,
        file_path: str | Path,
        tree: TranslationTree,
        file_format: FileFormat | str | None = None,
    ) -> None:
        """Serialize ``tree`` and write it to ``file_path``."""
        path = Path(file_path)
        content = self.stringify(tree, file_format or self.detect_format(path))
        await asyncio.to_thread(path.write_text, content, encoding="utf-8")

    def _parse_json(self, content: str) -> TranslationTree:
        clean = content.lstrip("\ufeff")
        try:
            data = json.loads(clean)
        except json.JSONDecodeError as e:
            if self.strict:
                raise ParseError(f"Invalid JSON: {e}") from e
            try:
                data = json.loads(fix_common_json_issues(clean))
            except json.JSONDecodeError as e2:
                raise ParseError(f"Invalid JSON: {e2}") from e2

        return _require_mapping(data, "JSON")

    def _parse_yaml(self, content: str) -> TranslationTree:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ParseError(f"Invalid YAML: {e}") from e

        return _require_mapping(data, "YAML")

    def _parse_javascript(self, content: str) -> TranslationTree:
        cleaned = clean_javascript_content(content)

        start = cleaned.find("{")
        end = cleaned.rfind("}")
        if start == -1 or end < start:
            raise ParseError("Invalid JavaScript/TypeScript: no exported object literal")

        literal = cleaned[start : end + 1]
        try:
            data = json.loads(fix_common_json_issues(literal))
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid JavaScript/TypeScript: {e}") from e

        return _require_mapping(data, "JavaScript")


def clean_javascript_content(content: str) -> str:
    """Strip module syntax so only the exported object literal remains."""
    cleaned = re.sub(r"^\s*import\s+.*?$", "", content, flags=re.MULTILINE)
    cleaned = re.sub(r"export\s*\{[^}]*\};?", "", cleaned)
    cleaned = re.sub(r"export\s+(default\s+)?", "", cleaned)
    cleaned = re.sub(r"module\.exports\s*=\s*", "", cleaned)
    cleaned = re.sub(r"\}\s*as\s+const\b", "}", cleaned)
    return cleaned


_DOUBLE_QUOTED = r'"(?:[^"\\]|\\.)*"'


def fix_common_json_issues(content: str) -> str:
    """Repair the JSON mistakes hand-edited locale files usually contain."""

    def _single_quoted(match: re.Match[str]) -> str:
        if match.group(1) is None:
            return match.group(0)
        return json.dumps(match.group(1).replace("\\'", "'"), ensure_ascii=False)

    def _unquoted_key(match: re.Match[str]) -> str:
        if match.group(1) is None:
            return match.group(0)
        return f'{match.group(1)}"{match.group(2)}":'

    fixed = re.sub(r"/\*[\s\S]*?\*/", "", content)
    fixed = re.sub(r"^\s*//.*$", "", fixed, flags=re.MULTILINE)
    fixed = re.sub(rf"{_DOUBLE_QUOTED}|'((?:[^'\\]|\\.)*)'", _single_quoted, fixed)
    fixed = re.sub(
        rf"{_DOUBLE_QUOTED}|([{{,]\s*)([A-Za-z_$][A-Za-z0-9_$]*)\s*:", _unquoted_key, fixed
    )
    fixed = re.sub(r",(\s*[}\]])", r"\1", fixed)
    return fixed


def _require_mapping(data: object, label: str) -> TranslationTree:
    if not isinstance(data, dict):
        raise ParseError(f"{label} must contain an object")
    return data
