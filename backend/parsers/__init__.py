from .schema.sql_ddl_parser import SQLDDLParser, parse_sql
from .parser_manager import (
    EmptySchemaError,
    ParserManager,
    SchemaImportError,
    SchemaTooLargeError,
)

__all__ = [
    'SQLDDLParser', 'parse_sql',
    'ParserManager', 'SchemaImportError',
    'EmptySchemaError', 'SchemaTooLargeError',
]
