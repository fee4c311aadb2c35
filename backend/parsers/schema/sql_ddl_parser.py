"""
SQL DDL Schema Parser - Reverse-engineer CREATE TABLE / ALTER TABLE scripts.

Uses regex-based parsing on comment-stripped statements, with parenthesis
counting for table bodies and clause lists. Parsing is permissive: anything
that does not look like a table, column or foreign key is skipped rather than
reported as an error.

Two passes run over the statements: CREATE TABLE first, so that ALTER TABLE
foreign keys can reference tables declared later in the script.
"""

import logging
import re
from typing import Dict, List, Optional, Set

from ..base import (
    BaseSchemaParser,
    extract_block_body,
    extract_on_delete,
    extract_on_update,
    split_identifier_list,
    split_statements,
    split_top_level,
    strip_identifier_quotes,
    strip_sql_comments,
)
from .design_builder import build_design

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Compiled regex patterns
# ---------------------------------------------------------------------------

# Optionally quoted identifier, optionally schema-qualified: "public"."users"
_IDENT = r'["\'`]?(?:\w+["\'`]?\.["\'`]?)?(\w+)["\'`]?'

_RE_CREATE_TABLE = re.compile(
    r'CREATE\s+(?:(?:GLOBAL|LOCAL)\s+)?(?:(?:TEMPORARY|TEMP|UNLOGGED)\s+)?TABLE\s+'
    r'(?:IF\s+NOT\s+EXISTS\s+)?' + _IDENT + r'\s*\(',
    re.IGNORECASE,
)

_RE_ALTER_TABLE = re.compile(
    r'ALTER\s+TABLE\s+(?:ONLY\s+)?(?:IF\s+EXISTS\s+)?(?:ONLY\s+)?' + _IDENT,
    re.IGNORECASE,
)
_RE_ALTER_TABLE_KEYWORD = re.compile(r'ALTER\s+TABLE\b', re.IGNORECASE)

# Parenthesised lists stop at the next '(' as well as ')'
_RE_FOREIGN_KEY_COLUMNS = re.compile(r'FOREIGN\s+KEY\s*\(([^()]+)\)', re.IGNORECASE)
_RE_REFERENCES = re.compile(r'\bREFERENCES\s+' + _IDENT + r'\s*\(([^()]+)\)', re.IGNORECASE)
_RE_PRIMARY_KEY_COLUMNS = re.compile(r'PRIMARY\s+KEY\s*\(([^()]+)\)', re.IGNORECASE)

# Table-level constraint clauses inside a CREATE TABLE body
_RE_PK_CONSTRAINT = re.compile(r'^(?:CONSTRAINT\s+\S+\s+)?PRIMARY\s+KEY\b', re.IGNORECASE)
_RE_FK_CONSTRAINT = re.compile(r'^(?:CONSTRAINT\s+\S+\s+)?FOREIGN\s+KEY\b', re.IGNORECASE)
_RE_SKIPPED_CONSTRAINT = re.compile(
    r'^(?:CONSTRAINT\s+\S+\s+)?(?:UNIQUE|CHECK|EXCLUDE)\b', re.IGNORECASE)

# MySQL index clause: KEY/INDEX [name] [USING type] (col, ...). The list must
# open with an identifier, so `key VARCHAR(100)` stays a column.
_RE_INDEX_CLAUSE = re.compile(
    r'^(?:FULLTEXT|SPATIAL|KEY|INDEX)\b(?:\s+(?:KEY|INDEX)\b)?'
    r'(?:\s*["`]?\w+["`]?)?(?:\s+USING\s+\w+)?'
    r'\s*\(\s*["`]?[^\W\d]',
    re.IGNORECASE,
)

# Keywords that end a column type: "INT NOT NULL" has type "INT"
_TYPE_STOP_WORDS = (
    'NOT', 'NULL', 'PRIMARY', 'UNIQUE', 'DEFAULT', 'REFERENCES', 'CHECK',
    'CONSTRAINT', 'AUTO_INCREMENT', 'AUTOINCREMENT', 'IDENTITY', 'GENERATED',
    'COLLATE', 'COMMENT', 'ON', 'AS', 'KEY',
)

# Column definition: name then a type of one or more words with an optional
# (length[, scale]), e.g. `price` DECIMAL(10,2) / created TIMESTAMP WITH TIME ZONE
_RE_COLUMN = re.compile(
    r'^["\'`]?(\w+)["\'`]?\s+'
    r'([A-Z][A-Z0-9_]*'
    r'(?:\s+(?!(?:' + '|'.join(_TYPE_STOP_WORDS) + r')\b)[A-Z][A-Z0-9_]*)*'
    r'(?:\s*\([^)]*\))?)',
    re.IGNORECASE,
)

_RE_NOT_NULL = re.compile(r'\bNOT\s+NULL\b', re.IGNORECASE)
_RE_UNIQUE = re.compile(r'\bUNIQUE\b', re.IGNORECASE)
_RE_PRIMARY_KEY = re.compile(r'\bPRIMARY\s+KEY\b', re.IGNORECASE)
_RE_DEFAULT = re.compile(r"\bDEFAULT\s+('[^']*'|[^\s,]+)", re.IGNORECASE)

# Junction detection treats a column literally named id as a surrogate key
_ID_COLUMN = 'id'


# ---------------------------------------------------------------------------
# Column and constraint clauses
# ---------------------------------------------------------------------------

def parse_column_definition(definition: str) -> Optional[Dict]:
    """Parse a single column clause, or return None when it is not one."""
    match = _RE_COLUMN.match(definition)
    if not match:
        return None

    column = {
        'name': match.group(1),
        'type': match.group(2).strip(),
        'nullable': True,
        'unique': False,
        'primary_key': False,
    }

    rest = definition[match.end():]
    if _RE_NOT_NULL.search(rest):
        column['nullable'] = False
    if _RE_UNIQUE.search(rest):
        column['unique'] = True
    if _RE_PRIMARY_KEY.search(rest):
        column['primary_key'] = True
        column['nullable'] = False

    default_match = _RE_DEFAULT.search(rest)
    if default_match:
        column['default'] = default_match.group(1)

    ref_match = _RE_REFERENCES.search(rest)
    if ref_match:
        column['references'] = {
            'table': ref_match.group(1),
            'column': strip_identifier_quotes(ref_match.group(2)),
            'on_delete': extract_on_delete(rest),
            'on_update': extract_on_update(rest),
        }

    return column


def parse_primary_key_constraint(clause: str) -> Optional[List[str]]:
    match = _RE_PRIMARY_KEY_COLUMNS.search(clause)
    return split_identifier_list(match.group(1)) if match else None


def parse_foreign_key_constraint(clause: str) -> Optional[Dict]:
    """Parse FOREIGN KEY (cols) REFERENCES table(cols) [ON DELETE ..] [ON UPDATE ..]."""
    columns_match = _RE_FOREIGN_KEY_COLUMNS.search(clause)
    if not columns_match:
        return None
    columns = split_identifier_list(columns_match.group(1))
    ref_match = _RE_REFERENCES.search(clause, columns_match.end())
    if not columns or not ref_match:
        return None
    return {
        'columns': columns,
        'references_table': ref_match.group(1),
        'references_columns': split_identifier_list(ref_match.group(2)),
        'on_delete': extract_on_delete(clause),
        'on_update': extract_on_update(clause),
    }


def _process_table_clause(clause: str, table: Dict):
    """Route one clause of a CREATE TABLE body into the table record."""
    if _RE_PK_CONSTRAINT.match(clause):
        pk = parse_primary_key_constraint(clause)
        if pk:
            table['primary_key'] = pk
        return

    if _RE_FK_CONSTRAINT.match(clause):
        fk = parse_foreign_key_constraint(clause)
        if fk:
            table['foreign_keys'].append(fk)
        else:
            logger.debug("Skipping malformed foreign key in %s: %s", table['name'], clause)
        return

    if _RE_SKIPPED_CONSTRAINT.match(clause) or _RE_INDEX_CLAUSE.match(clause):
        return

    column = parse_column_definition(clause)
    if column:
        table['columns'].append(column)
    else:
        logger.debug("Dropping unparseable clause in %s: %s", table['name'], clause)


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

def parse_create_table(statement: str) -> Optional[Dict]:
    """Parse a CREATE TABLE statement into a table record."""
    match = _RE_CREATE_TABLE.search(statement)
    if not match:
        return None

    body, body_start, _ = extract_block_body(statement, match.end() - 1)
    if body_start == -1:
        logger.debug("Unbalanced parentheses in CREATE TABLE %s", match.group(1))
        return None

    table = {
        'name': match.group(1),
        'columns': [],
        'primary_key': None,
        'foreign_keys': [],
    }
    for clause in split_top_level(body):
        if clause:
            _process_table_clause(clause, table)
    return table


def parse_alter_table(statement: str, tables: Dict[str, Dict]) -> Optional[Dict]:
    """Attach the foreign key of an ALTER TABLE statement to its registered table.

    Returns the foreign key that was added, or None when the statement was
    skipped (no table name, unknown table, no FOREIGN KEY or no REFERENCES).
    """
    name_match = _RE_ALTER_TABLE.search(statement)
    if not name_match:
        return None

    table = tables.get(name_match.group(1).lower())
    if table is None:
        logger.debug("ALTER TABLE on unknown table %s; skipping", name_match.group(1))
        return None

    columns_match = _RE_FOREIGN_KEY_COLUMNS.search(statement)
    if not columns_match:
        return None
    columns = split_identifier_list(columns_match.group(1))
    if not columns:
        return None

    ref_match = _RE_REFERENCES.search(statement)
    if not ref_match:
        return None

    fk = {
        'columns': columns,
        'references_table': ref_match.group(1),
        'references_columns': split_identifier_list(ref_match.group(2)),
        'on_delete': extract_on_delete(statement),
        'on_update': extract_on_update(statement),
    }
    table['foreign_keys'].append(fk)
    return fk


def is_create_table_statement(statement: str) -> bool:
    return _RE_CREATE_TABLE.search(statement) is not None


def is_alter_foreign_key_statement(statement: str) -> bool:
    return (_RE_ALTER_TABLE_KEYWORD.search(statement) is not None
            and _RE_FOREIGN_KEY_COLUMNS.search(statement) is not None)


def parse_tables(sql: str) -> Dict[str, Dict]:
    """Build the table registry for a DDL script.

    Keys are lower-cased table names in first-declaration order. A table
    declared twice keeps its first position and the later definition.
    """
    statements = split_statements(strip_sql_comments(sql))
    tables: Dict[str, Dict] = {}

    for stmt in statements:
        if is_create_table_statement(stmt):
            table = parse_create_table(stmt)
            if table:
                tables[table['name'].lower()] = table

    for stmt in statements:
        if is_alter_foreign_key_statement(stmt):
            parse_alter_table(stmt, tables)

    return tables


# ---------------------------------------------------------------------------
# Junction tables
# ---------------------------------------------------------------------------

def collect_foreign_key_columns(table: Dict) -> Set[str]:
    """Lower-cased names of every column taking part in a foreign key."""
    fk_columns = set()
    for fk in table['foreign_keys']:
        fk_columns.update(c.lower() for c in fk['columns'])
    for column in table['columns']:
        if column.get('references'):
            fk_columns.add(column['name'].lower())
    return fk_columns


def is_junction_table(table: Dict) -> bool:
    """Heuristic: two or more FK columns and no more data columns than FK columns."""
    fk_columns = collect_foreign_key_columns(table)
    non_pk_columns = [
        c for c in table['columns']
        if not c['primary_key'] and c['name'].lower() != _ID_COLUMN
    ]
    return len(fk_columns) >= 2 and len(non_pk_columns) <= len(fk_columns)


def identify_junction_tables(tables: Dict[str, Dict]) -> List[str]:
    """Registry keys of junction tables, in registry order."""
    return [key for key, table in tables.items() if is_junction_table(table)]


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class SQLDDLParser(BaseSchemaParser):
    """Parse SQL DDL text into a table schema or an entity/relation design."""

    def parse(self, content: str) -> Dict:
        """Return the table-level schema: tables plus many-to-one relationships."""
        tables = parse_tables(content)
        junctions = set(identify_junction_tables(tables))

        result_tables = []
        for key, table in tables.items():
            foreign_keys = [self._flatten_foreign_key(fk) for fk in table['foreign_keys']]
            for column in table['columns']:
                ref = column.get('references')
                if ref and not any(fk['column'] == column['name'] for fk in foreign_keys):
                    foreign_keys.append({
                        'column': column['name'],
                        'columns': [column['name']],
                        'references_table': ref['table'],
                        'references_column': ref['column'],
                        'on_delete': ref['on_delete'],
                        'on_update': ref['on_update'],
                    })

            result_tables.append({
                'name': table['name'],
                'columns': [self._public_column(c) for c in table['columns']],
                'primary_key': table['primary_key'],
                'foreign_keys': foreign_keys,
                'is_junction': key in junctions,
            })

        return self.make_schema_result(result_tables)

    def parse_design(self, content: str, **layout) -> Dict:
        """Return {'entities': [...], 'relations': [...]} for the DDL in content."""
        tables = parse_tables(content)
        junctions = identify_junction_tables(tables)
        return build_design(tables, junctions, **layout)

    @staticmethod
    def _flatten_foreign_key(fk: Dict) -> Dict:
        return {
            'column': fk['columns'][0] if fk['columns'] else '',
            'columns': list(fk['columns']),
            'references_table': fk['references_table'],
            'references_column': fk['references_columns'][0] if fk['references_columns'] else '',
            'on_delete': fk['on_delete'],
            'on_update': fk['on_update'],
        }

    @staticmethod
    def _public_column(column: Dict) -> Dict:
        result = {
            'name': column['name'],
            'type': column['type'],
            'nullable': column['nullable'],
            'primary_key': column['primary_key'],
            'unique': column['unique'],
        }
        if 'default' in column:
            result['default'] = column['default']
        return result


def parse_sql(sql: str, **layout) -> Dict:
    """Reverse-engineer DDL text into {'entities': [...], 'relations': [...]}."""
    return SQLDDLParser().parse_design(sql, **layout)
