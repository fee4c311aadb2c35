"""
Parser Manager - entry point for SQL schema imports.

Validates DDL handed over by the import UI, routes it to the DDL parser and
turns "nothing usable found" into an error the caller can show. The parser
itself never raises for bad SQL; only this layer does.
"""

import logging
from typing import Dict

from config import Config

from .base import split_statements, strip_sql_comments
from .schema.sql_ddl_parser import (
    SQLDDLParser,
    is_alter_foreign_key_statement,
    is_create_table_statement,
)

logger = logging.getLogger(__name__)


class SchemaImportError(Exception):
    """Raised when DDL text cannot be turned into a usable design."""
    pass


class EmptySchemaError(SchemaImportError):
    """Raised when the input contains no CREATE TABLE the parser understands."""
    pass


class SchemaTooLargeError(SchemaImportError):
    """Raised when the input exceeds Config.SQL_IMPORT_MAX_LENGTH."""
    pass


class ParserManager:
    """Routes schema text to the DDL parser and wraps the results."""

    def __init__(self, max_length: int = None):
        self.max_length = max_length if max_length is not None else Config.SQL_IMPORT_MAX_LENGTH
        self.parser = SQLDDLParser()

    # -----------------------------------------------------------------------
    # Inspection
    # -----------------------------------------------------------------------

    def detect_statements(self, sql: str) -> Dict:
        """Count CREATE TABLE and ALTER TABLE ... FOREIGN KEY statements.

        Comments are ignored, so commented-out DDL is not counted.
        """
        self._validate(sql)
        statements = split_statements(strip_sql_comments(sql))
        create_count = sum(1 for s in statements if is_create_table_statement(s))
        alter_count = sum(1 for s in statements if is_alter_foreign_key_statement(s))
        return {
            'statements': len(statements),
            'create_table': create_count,
            'alter_table_foreign_keys': alter_count,
        }

    # -----------------------------------------------------------------------
    # Parsing
    # -----------------------------------------------------------------------

    def parse_database_schema(self, sql: str) -> Dict:
        """Table-level schema (tables + relationships) for the DDL."""
        self._validate(sql)
        return self.parser.parse(sql)

    def import_sql(self, sql: str, **layout) -> Dict:
        """Reverse-engineer DDL into entities and relations for the designer.

        Raises:
            TypeError: sql is not a string.
            SchemaTooLargeError: sql is longer than the configured limit.
            EmptySchemaError: no entity could be built from sql.
        """
        self._validate(sql)
        design = self.parser.parse_design(sql, **layout)

        entities = design['entities']
        relations = design['relations']
        if not entities:
            raise EmptySchemaError('No valid CREATE TABLE statements found in the SQL')

        summary = f"Imported {len(entities)} entities and {len(relations)} relations"
        logger.info(summary)
        return {
            'entities': entities,
            'relations': relations,
            'summary': summary,
        }

    def _validate(self, sql: str):
        if not isinstance(sql, str):
            raise TypeError(f"SQL input must be a string, got {type(sql).__name__}")
        if len(sql) > self.max_length:
            logger.warning("Rejected SQL import of %d characters (limit %d)",
                           len(sql), self.max_length)
            raise SchemaTooLargeError(
                f"SQL input is {len(sql)} characters; the limit is {self.max_length}")
