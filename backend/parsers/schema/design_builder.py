"""
Design builder - turn a parsed table registry into entity and relation designs.

Entities get placeholder grid positions so they do not overlap before the
canvas runs its own layout. Relations reference entities by id only.
"""

import logging
import uuid
from typing import Dict, List, Optional

from config import Config

from ..base import lower_first, to_camel_case, to_pascal_case
from .sql_types import derive_validations, parse_sql_type, sql_type_to_field_type

logger = logging.getLogger(__name__)

# Columns inherited from the common base entity; never emitted as fields
BASE_FIELDS = frozenset({
    'id',
    'estado',
    'fecha_creacion',
    'fecha_actualizacion',
    'creado_por',
    'modificado_por',
    'version',
    'created_at',
    'updated_at',
    'created_by',
    'updated_by',
    'deleted_at',
    'is_deleted',
})

DEFAULT_ENTITY_CONFIG = {
    'generate_controller': True,
    'generate_service': True,
    'enable_caching': True,
}

DEFAULT_FK_ACTION = 'NO_ACTION'
JUNCTION_FK_ACTION = 'CASCADE'


def _new_id() -> str:
    return uuid.uuid4().hex


def table_to_entity_name(table_name: str) -> str:
    """'user_profiles' -> 'UserProfile', 'address' stays singular."""
    name = table_name
    if name.endswith('s') and not name.endswith('ss'):
        name = name[:-1]
    return to_pascal_case(name)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

def create_field_from_column(column: Dict, default_length: int = None) -> Dict:
    _, length = parse_sql_type(column['type'])
    field_type = sql_type_to_field_type(column['type'])

    field = {
        'id': _new_id(),
        'name': to_camel_case(column['name']),
        'column_name': column['name'],
        'type': field_type,
        'nullable': column['nullable'],
        'unique': column['unique'],
        'validations': derive_validations(field_type, column['nullable'], length,
                                          default_length),
    }
    if column.get('default') is not None:
        field['default_value'] = column['default']
    return field


def should_skip_column(column: Dict, table: Dict) -> bool:
    """Primary keys, base/audit columns and FK columns are not plain fields."""
    name = column['name'].lower()
    if name in BASE_FIELDS or column['primary_key']:
        return True
    if column.get('references'):
        return True
    return any(name in (c.lower() for c in fk['columns']) for fk in table['foreign_keys'])


def create_entity_from_table(table: Dict, position: Dict, default_length: int = None) -> Dict:
    fields = [
        create_field_from_column(column, default_length)
        for column in table['columns']
        if not should_skip_column(column, table)
    ]
    return {
        'id': _new_id(),
        'name': table_to_entity_name(table['name']),
        'table_name': table['name'],
        'position': position,
        'fields': fields,
        'config': dict(DEFAULT_ENTITY_CONFIG),
    }


def convert_tables_to_entities(tables: Dict[str, Dict], junction_tables: List[str],
                               origin_x: int = None, origin_y: int = None,
                               step_x: int = None, step_y: int = None,
                               max_x: int = None,
                               default_length: int = None) -> Dict[str, Dict]:
    """Build entities for every non-junction table.

    Returns a dict of registry key -> entity in registry order. Positions
    advance left to right and wrap to a new row once x passes max_x.
    """
    origin_x = Config.LAYOUT_ORIGIN_X if origin_x is None else origin_x
    origin_y = Config.LAYOUT_ORIGIN_Y if origin_y is None else origin_y
    step_x = Config.LAYOUT_STEP_X if step_x is None else step_x
    step_y = Config.LAYOUT_STEP_Y if step_y is None else step_y
    max_x = Config.LAYOUT_MAX_X if max_x is None else max_x

    junctions = set(junction_tables)
    entities: Dict[str, Dict] = {}
    pos_x, pos_y = origin_x, origin_y

    for key, table in tables.items():
        if key in junctions:
            continue

        entities[key] = create_entity_from_table(
            table, {'x': pos_x, 'y': pos_y}, default_length)

        pos_x += step_x
        if pos_x > max_x:
            pos_x = origin_x
            pos_y += step_y

    return entities


# ---------------------------------------------------------------------------
# Relations
# ---------------------------------------------------------------------------

def _many_to_one(source: Dict, target: Dict, column_name: str, nullable: bool,
                 on_delete: Optional[str], on_update: Optional[str]) -> Dict:
    return {
        'id': _new_id(),
        'type': 'ManyToOne',
        'source_entity_id': source['id'],
        'source_field_name': lower_first(target['name']),
        'target_entity_id': target['id'],
        'bidirectional': False,
        'fetch_type': 'LAZY',
        'cascade': [],
        'foreign_key': {
            'column_name': column_name,
            'nullable': nullable,
            'on_delete': on_delete or DEFAULT_FK_ACTION,
            'on_update': on_update or DEFAULT_FK_ACTION,
        },
    }


def _relation_exists(relations: List[Dict], source_id: str, target_id: str,
                     column_name: str) -> bool:
    column_name = column_name.lower()
    return any(
        r['source_entity_id'] == source_id
        and r['target_entity_id'] == target_id
        and r['foreign_key']['column_name'].lower() == column_name
        for r in relations
    )


def convert_foreign_keys_to_relations(tables: Dict[str, Dict],
                                      entities: Dict[str, Dict]) -> List[Dict]:
    """ManyToOne relations from table-level, ALTER and inline foreign keys.

    Junction tables have no entity and are skipped here. An inline REFERENCES
    that repeats a table-level foreign key on the same column is emitted once.
    Table-level and ALTER keys are always nullable; inline references take the
    column's nullability.
    """
    relations: List[Dict] = []

    for key, table in tables.items():
        source = entities.get(key)
        if source is None:
            continue

        for fk in table['foreign_keys']:
            target = entities.get(fk['references_table'].lower())
            if target is None or not fk['columns']:
                logger.debug("No entity for %s -> %s; skipping foreign key",
                             table['name'], fk['references_table'])
                continue
            relations.append(_many_to_one(
                source, target, fk['columns'][0], True,
                fk['on_delete'], fk['on_update']))

        for column in table['columns']:
            ref = column.get('references')
            if not ref:
                continue
            target = entities.get(ref['table'].lower())
            if target is None:
                logger.debug("No entity for %s.%s -> %s; skipping reference",
                             table['name'], column['name'], ref['table'])
                continue
            if _relation_exists(relations, source['id'], target['id'], column['name']):
                continue
            relations.append(_many_to_one(
                source, target, column['name'], column['nullable'],
                ref['on_delete'], ref['on_update']))

    return relations


def collect_junction_foreign_keys(table: Dict) -> List[Dict]:
    """Table-level FKs followed by inline references they do not already cover."""
    fks = list(table['foreign_keys'])
    for column in table['columns']:
        ref = column.get('references')
        if not ref:
            continue
        name = column['name'].lower()
        if any(name in (c.lower() for c in fk['columns']) for fk in fks):
            continue
        fks.append({
            'columns': [column['name']],
            'references_table': ref['table'],
            'references_columns': [ref['column']],
            'on_delete': ref['on_delete'],
            'on_update': ref['on_update'],
        })
    return fks


def convert_junction_tables_to_relations(tables: Dict[str, Dict], junction_tables: List[str],
                                         entities: Dict[str, Dict]) -> List[Dict]:
    """One ManyToMany relation per junction table.

    Only the first two foreign keys are used as endpoints; any further keys on
    the junction table are ignored. Tables whose first two keys do not both
    resolve to entities contribute nothing.
    """
    relations = []

    for key in junction_tables:
        table = tables.get(key)
        if table is None:
            continue

        fks = collect_junction_foreign_keys(table)
        if len(fks) < 2:
            logger.debug("Junction table %s has fewer than two foreign keys; dropped",
                         table['name'])
            continue

        source = entities.get(fks[0]['references_table'].lower())
        target = entities.get(fks[1]['references_table'].lower())
        if source is None or target is None:
            logger.debug("Junction table %s references unknown tables; dropped", table['name'])
            continue

        join_column = fks[0]['columns'][0]
        relations.append({
            'id': _new_id(),
            'type': 'ManyToMany',
            'source_entity_id': source['id'],
            'source_field_name': lower_first(target['name']) + 's',
            'target_entity_id': target['id'],
            'bidirectional': False,
            'fetch_type': 'LAZY',
            'cascade': [],
            'foreign_key': {
                'column_name': join_column,
                'nullable': False,
                'on_delete': JUNCTION_FK_ACTION,
                'on_update': JUNCTION_FK_ACTION,
            },
            'join_table': {
                'name': table['name'],
                'join_column': join_column,
                'inverse_join_column': fks[1]['columns'][0],
            },
        })

    return relations


def build_design(tables: Dict[str, Dict], junction_tables: List[str], **layout) -> Dict:
    """Entities and relations for a parsed table registry."""
    entities = convert_tables_to_entities(tables, junction_tables, **layout)
    relations = convert_foreign_keys_to_relations(tables, entities)
    relations.extend(convert_junction_tables_to_relations(tables, junction_tables, entities))
    return {
        'entities': list(entities.values()),
        'relations': relations,
    }
