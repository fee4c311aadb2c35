from .sql_ddl_parser import SQLDDLParser, parse_sql, parse_tables, identify_junction_tables
from .design_builder import build_design
from .sql_types import sql_type_to_field_type, SQL_TO_FIELD_TYPE

__all__ = [
    'SQLDDLParser',
    'parse_sql',
    'parse_tables',
    'identify_junction_tables',
    'build_design',
    'sql_type_to_field_type',
    'SQL_TO_FIELD_TYPE',
]
