"""
Base classes and shared utilities for the SQL schema parsers.

Provides comment stripping, statement splitting, parenthesis-aware clause
splitting, identifier cleanup and result formatting used by the DDL parser
and the design builder.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Comment stripping
# ---------------------------------------------------------------------------

def remove_block_comments(sql: str) -> str:
    """Remove /* ... */ comments by scanning indexes instead of using a regex.

    Runs in linear time, including on input made of thousands of '/*'
    with no closer. An unterminated comment drops everything after its opener.
    """
    parts: List[str] = []
    pos = 0
    while True:
        start = sql.find('/*', pos)
        if start == -1:
            parts.append(sql[pos:])
            break
        parts.append(sql[pos:start])
        end = sql.find('*/', start + 2)
        if end == -1:
            logger.debug("Unterminated block comment at offset %d; truncating input", start)
            break
        pos = end + 2
    return ''.join(parts)


def remove_line_comments(sql: str) -> str:
    """Truncate every line at its first '--'.

    String literals are not taken into account, so a '--' inside quotes
    also cuts the line.
    """
    lines = []
    for line in sql.split('\n'):
        idx = line.find('--')
        lines.append(line if idx == -1 else line[:idx])
    return '\n'.join(lines)


def strip_sql_comments(sql: str) -> str:
    """Strip block comments first, then line comments."""
    return remove_line_comments(remove_block_comments(sql))


# ---------------------------------------------------------------------------
# Statement / clause splitting
# ---------------------------------------------------------------------------

def split_statements(sql: str) -> List[str]:
    """Split comment-free SQL on ';' and drop blank fragments.

    Semicolons inside string literals are not recognised.
    """
    return [stmt for stmt in sql.split(';') if stmt.strip()]


def split_top_level(text: str, separator: str = ',') -> List[str]:
    """Split text on separator, ignoring separators nested in parentheses.

    'id INT, price DECIMAL(10,2)' -> ['id INT', 'price DECIMAL(10,2)']
    """
    parts = []
    current: List[str] = []
    depth = 0

    for ch in text:
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
        elif ch == separator and depth == 0:
            parts.append(''.join(current).strip())
            current = []
            continue
        current.append(ch)

    tail = ''.join(current).strip()
    if tail:
        parts.append(tail)
    return parts


def extract_block_body(content: str, start_pos: int,
                       open_char: str = '(', close_char: str = ')') -> Tuple[str, int, int]:
    """Extract the body of a bracket-delimited block starting from start_pos.

    Scans forward from start_pos to find open_char, then counts nesting to
    find the matching close_char.

    Args:
        content: Full text (should be comment-stripped).
        start_pos: Position to start scanning from.
        open_char: Opening bracket character.
        close_char: Closing bracket character.

    Returns:
        (body_text, body_start, body_end) - the text between the brackets and
        the absolute positions. Returns ('', -1, -1) if no balanced block found.
    """
    depth = 0
    body_start = -1

    for i in range(start_pos, len(content)):
        ch = content[i]
        if ch == open_char:
            if depth == 0:
                body_start = i + 1
            depth += 1
        elif ch == close_char and depth > 0:
            depth -= 1
            if depth == 0:
                return content[body_start:i], body_start, i
    return '', -1, -1


# ---------------------------------------------------------------------------
# Identifiers and FK actions
# ---------------------------------------------------------------------------

_QUOTE_CHARS_RE = re.compile(r'["\'`]')

_RE_ON_DELETE = re.compile(
    r'\bON\s+DELETE\s+(CASCADE|SET\s+NULL|RESTRICT|NO\s+ACTION)', re.IGNORECASE)
_RE_ON_UPDATE = re.compile(
    r'\bON\s+UPDATE\s+(CASCADE|SET\s+NULL|RESTRICT|NO\s+ACTION)', re.IGNORECASE)


def strip_identifier_quotes(name: str) -> str:
    """Remove ", ' and ` quoting from an identifier."""
    return _QUOTE_CHARS_RE.sub('', name).strip()


def split_identifier_list(text: str) -> List[str]:
    """Split '"a", b ,`c`' into ['a', 'b', 'c']."""
    return [strip_identifier_quotes(part) for part in text.split(',') if part.strip()]


def normalize_action(action: Optional[str]) -> Optional[str]:
    """'set  null' -> 'SET_NULL'."""
    if not action:
        return None
    return '_'.join(action.split()).upper()


def extract_on_delete(text: str) -> Optional[str]:
    match = _RE_ON_DELETE.search(text)
    return normalize_action(match.group(1)) if match else None


def extract_on_update(text: str) -> Optional[str]:
    match = _RE_ON_UPDATE.search(text)
    return normalize_action(match.group(1)) if match else None


# ---------------------------------------------------------------------------
# Naming helpers
# ---------------------------------------------------------------------------

_RE_SNAKE_SEGMENT = re.compile(r'_([a-z])')
_RE_WORD_SEPARATORS = re.compile(r'[_\s-]+')


def to_camel_case(name: str) -> str:
    """Column name to field name: 'first_name' -> 'firstName'."""
    return _RE_SNAKE_SEGMENT.sub(lambda m: m.group(1).upper(), name.lower())


def to_pascal_case(name: str) -> str:
    """'user_profile' -> 'UserProfile'."""
    return ''.join(word[:1].upper() + word[1:].lower()
                   for word in _RE_WORD_SEPARATORS.split(name) if word)


def lower_first(name: str) -> str:
    """'UserProfile' -> 'userProfile'."""
    return name[:1].lower() + name[1:]


# ---------------------------------------------------------------------------
# Base parser class
# ---------------------------------------------------------------------------

class BaseSchemaParser:
    """Base class for schema parsers that work on source text."""

    def parse(self, content: str) -> Dict:
        """Parse content and return standardized schema dict.

        Subclasses must override this method.
        """
        raise NotImplementedError

    def make_schema_result(self, tables: List[Dict]) -> Dict:
        """Build the schema result dict: tables plus their FK relationships."""
        return {
            'tables': tables,
            'relationships': self._detect_relationships(tables),
        }

    @staticmethod
    def _detect_relationships(tables: List[Dict]) -> List[Dict]:
        """Derive many-to-one relationships from each table's flattened foreign keys."""
        relationships = []
        for table in tables:
            for fk in table.get('foreign_keys', []):
                relationships.append({
                    'from_table': table['name'],
                    'to_table': fk['references_table'],
                    'from_column': fk.get('column', ''),
                    'to_column': fk.get('references_column', ''),
                    'type': 'many-to-one',
                })
        return relationships
