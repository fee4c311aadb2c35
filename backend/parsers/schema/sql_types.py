"""
SQL column type mapping.

Maps DDL column types onto the field type vocabulary used by entity designs
and derives the bean-validation rules a field should carry.
"""

import re
from typing import Dict, List, Optional, Tuple

from config import Config

STRING_TYPE = 'String'

# Lookup order matters: types that are not an exact key are matched by
# substring containment, first key wins.
SQL_TO_FIELD_TYPE = {
    # String types
    'VARCHAR': 'String',
    'CHAR': 'String',
    'TEXT': 'String',
    'CHARACTER VARYING': 'String',
    'CHARACTER': 'String',
    # Numeric types
    'BIGINT': 'Long',
    'BIGSERIAL': 'Long',
    'INT': 'Integer',
    'INTEGER': 'Integer',
    'SERIAL': 'Integer',
    'SMALLINT': 'Integer',
    'SMALLSERIAL': 'Integer',
    'DOUBLE PRECISION': 'Double',
    'DOUBLE': 'Double',
    'REAL': 'Float',
    'FLOAT': 'Float',
    'NUMERIC': 'BigDecimal',
    'DECIMAL': 'BigDecimal',
    'MONEY': 'BigDecimal',
    # Boolean
    'BOOLEAN': 'Boolean',
    'BOOL': 'Boolean',
    # Date/Time
    'DATE': 'LocalDate',
    'TIMESTAMP': 'LocalDateTime',
    'TIMESTAMP WITHOUT TIME ZONE': 'LocalDateTime',
    'TIMESTAMP WITH TIME ZONE': 'Instant',
    'TIMESTAMPTZ': 'Instant',
    'TIME': 'LocalTime',
    'TIME WITHOUT TIME ZONE': 'LocalTime',
    # Other
    'UUID': 'UUID',
    'BYTEA': 'byte[]',
    'BLOB': 'byte[]',
    # MySQL / SQL Server / Oracle spellings
    'DATETIME': 'LocalDateTime',
    'DATETIME2': 'LocalDateTime',
    'BIT': 'Boolean',
    'NUMBER': 'BigDecimal',
    'BINARY': 'byte[]',
    'VARBINARY': 'byte[]',
}

_RE_FIRST_INT = re.compile(r'^\s*(\d+)')


def parse_sql_type(sql_type: str) -> Tuple[str, Optional[int]]:
    """Split a column type into its upper-cased base type and length.

    'VARCHAR(50)' -> ('VARCHAR', 50), 'DECIMAL(10,2)' -> ('DECIMAL', 10),
    'TEXT' -> ('TEXT', None).
    """
    paren = sql_type.find('(')
    if paren == -1:
        return sql_type.strip().upper(), None

    base_type = sql_type[:paren].strip().upper()
    close = sql_type.find(')', paren)
    inner = sql_type[paren + 1:close if close != -1 else len(sql_type)]
    match = _RE_FIRST_INT.match(inner.split(',')[0])
    return base_type, int(match.group(1)) if match else None


def sql_type_to_field_type(sql_type: str) -> str:
    """Map a DDL type to a field type, defaulting to String."""
    base_type, _ = parse_sql_type(sql_type)

    exact = SQL_TO_FIELD_TYPE.get(base_type)
    if exact:
        return exact

    for key, field_type in SQL_TO_FIELD_TYPE.items():
        if key in base_type:
            return field_type

    return STRING_TYPE


def derive_validations(field_type: str, nullable: bool, length: Optional[int],
                       default_length: int = None) -> List[Dict]:
    """Validation rules implied by a column's type, nullability and length."""
    if default_length is None:
        default_length = Config.DEFAULT_STRING_LENGTH

    validations = []
    if not nullable:
        validations.append({'type': 'NotBlank' if field_type == STRING_TYPE else 'NotNull'})

    if field_type == STRING_TYPE and length and length != default_length:
        validations.append({'type': 'Size', 'value': f'max = {length}'})

    return validations
