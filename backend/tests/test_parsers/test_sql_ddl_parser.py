from parsers.schema.sql_ddl_parser import (
    SQLDDLParser,
    identify_junction_tables,
    is_junction_table,
    parse_alter_table,
    parse_column_definition,
    parse_create_table,
    parse_foreign_key_constraint,
    parse_tables,
)


def test_parse_column_with_constraints():
    column = parse_column_definition("email VARCHAR(120) NOT NULL UNIQUE DEFAULT 'none'")

    assert column['name'] == 'email'
    assert column['type'] == 'VARCHAR(120)'
    assert column['nullable'] is False
    assert column['unique'] is True
    assert column['primary_key'] is False
    assert column['default'] == "'none'"
    assert 'references' not in column


def test_primary_key_column_is_not_nullable():
    column = parse_column_definition('id SERIAL PRIMARY KEY')
    assert column['type'] == 'SERIAL'
    assert column['primary_key'] is True
    assert column['nullable'] is False


def test_multi_word_type_stops_at_constraint_keyword():
    column = parse_column_definition('`placed` timestamp with time zone not null default now()')
    assert column['name'] == 'placed'
    assert column['type'] == 'timestamp with time zone'
    assert column['nullable'] is False
    assert column['default'] == 'now()'


def test_inline_reference_with_actions():
    column = parse_column_definition(
        'author_id INT NOT NULL REFERENCES "authors"(id) ON UPDATE CASCADE ON DELETE SET NULL')

    assert column['type'] == 'INT'
    assert column['nullable'] is False
    assert column['references'] == {
        'table': 'authors',
        'column': 'id',
        'on_delete': 'SET_NULL',
        'on_update': 'CASCADE',
    }


def test_inline_reference_actions_default_to_none():
    column = parse_column_definition('owner_id BIGINT REFERENCES public.users(id)')
    assert column['references']['table'] == 'users'
    assert column['references']['on_delete'] is None
    assert column['references']['on_update'] is None


def test_unparseable_column_returns_none():
    assert parse_column_definition('= 42') is None
    assert parse_column_definition('lonely') is None


def test_foreign_key_constraint():
    fk = parse_foreign_key_constraint(
        'CONSTRAINT fk_x FOREIGN KEY ("a_id", b_id) REFERENCES parents (a_id, b_id) ON DELETE RESTRICT')

    assert fk['columns'] == ['a_id', 'b_id']
    assert fk['references_table'] == 'parents'
    assert fk['references_columns'] == ['a_id', 'b_id']
    assert fk['on_delete'] == 'RESTRICT'
    assert fk['on_update'] is None


def test_create_table_routes_clauses():
    table = parse_create_table("""
        CREATE TABLE IF NOT EXISTS `order_lines` (
            order_id INT NOT NULL,
            line_no INT NOT NULL,
            price DECIMAL(10,2),
            note VARCHAR(20),
            PRIMARY KEY (order_id, line_no),
            UNIQUE (note),
            CHECK (price > 0),
            FOREIGN KEY (order_id) REFERENCES orders(id)
        ) ENGINE=InnoDB
    """)

    assert table['name'] == 'order_lines'
    assert [c['name'] for c in table['columns']] == ['order_id', 'line_no', 'price', 'note']
    assert table['columns'][2]['type'] == 'DECIMAL(10,2)'
    assert table['primary_key'] == ['order_id', 'line_no']
    assert len(table['foreign_keys']) == 1
    assert table['foreign_keys'][0]['references_table'] == 'orders'


def test_non_create_statement_yields_nothing():
    assert parse_create_table('SELECT * FROM users') is None
    assert parse_create_table('CREATE TABLE broken (id INT') is None


def test_alter_table_appends_foreign_key():
    tables = parse_tables('CREATE TABLE orders (id INT PRIMARY KEY, customer_id INT)')
    fk = parse_alter_table(
        'ALTER TABLE orders ADD CONSTRAINT fk FOREIGN KEY (customer_id) REFERENCES customers(id) '
        'ON UPDATE NO ACTION', tables)

    assert fk['columns'] == ['customer_id']
    assert fk['on_update'] == 'NO_ACTION'
    assert tables['orders']['foreign_keys'] == [fk]


def test_alter_table_skips_unknown_or_incomplete():
    tables = parse_tables('CREATE TABLE orders (id INT PRIMARY KEY, customer_id INT)')

    assert parse_alter_table(
        'ALTER TABLE ghosts ADD FOREIGN KEY (x) REFERENCES y(id)', tables) is None
    assert parse_alter_table(
        'ALTER TABLE orders ADD FOREIGN KEY (customer_id)', tables) is None
    assert parse_alter_table('ALTER TABLE orders ADD COLUMN note TEXT', tables) is None
    assert tables['orders']['foreign_keys'] == []


def test_alter_before_create_still_resolves():
    """ALTER statements run after every CREATE TABLE, regardless of position"""
    tables = parse_tables("""
        ALTER TABLE b ADD FOREIGN KEY (a_id) REFERENCES a(id);
        CREATE TABLE b (id INT PRIMARY KEY, a_id INT);
        CREATE TABLE a (id INT PRIMARY KEY);
    """)

    assert list(tables) == ['b', 'a']
    assert tables['b']['foreign_keys'][0]['references_table'] == 'a'


def test_registry_keeps_declaration_order_and_lowercases_keys():
    tables = parse_tables("""
        CREATE TABLE Zebra (id INT);
        CREATE TABLE apple (id INT);
        CREATE TABLE Mango (id INT);
    """)
    assert list(tables) == ['zebra', 'apple', 'mango']
    assert tables['zebra']['name'] == 'Zebra'


def test_junction_detection():
    tables = parse_tables("""
        CREATE TABLE users (id INT PRIMARY KEY, name TEXT);
        CREATE TABLE roles (id INT PRIMARY KEY, name TEXT);
        CREATE TABLE user_roles (
            user_id INT REFERENCES users(id),
            role_id INT REFERENCES roles(id),
            PRIMARY KEY (user_id, role_id)
        );
        CREATE TABLE posts (
            id INT PRIMARY KEY,
            user_id INT REFERENCES users(id),
            title TEXT,
            body TEXT
        );
    """)

    assert identify_junction_tables(tables) == ['user_roles']
    assert is_junction_table(tables['posts']) is False


def test_junction_column_budget():
    """Data columns may not outnumber FK columns; a bare id column is not counted"""
    tables = parse_tables("""
        CREATE TABLE tags (id INT PRIMARY KEY);
        CREATE TABLE posts (id INT PRIMARY KEY);
        CREATE TABLE post_tags (
            id INT,
            post_id INT,
            tag_id INT,
            FOREIGN KEY (post_id) REFERENCES posts(id),
            FOREIGN KEY (tag_id) REFERENCES tags(id)
        );
        CREATE TABLE post_tag_votes (
            id INT PRIMARY KEY,
            post_id INT REFERENCES posts(id),
            tag_id INT REFERENCES tags(id),
            score INT,
            voted_on DATE
        );
        CREATE TABLE post_tag_links (
            post_id INT REFERENCES posts(id),
            tag_id INT REFERENCES tags(id),
            linked_by INT REFERENCES posts(id)
        );
    """)
    assert identify_junction_tables(tables) == ['post_tags', 'post_tag_links']


def test_schema_view(shop_sql):
    result = SQLDDLParser().parse(shop_sql)

    names = [t['name'] for t in result['tables']]
    assert names == ['customers', 'orders', 'products', 'product_orders']

    orders = result['tables'][1]
    assert orders['is_junction'] is False
    assert orders['foreign_keys'][0]['column'] == 'customer_id'
    assert orders['foreign_keys'][0]['references_table'] == 'customers'
    assert orders['foreign_keys'][0]['on_delete'] == 'CASCADE'
    assert result['tables'][3]['is_junction'] is True

    rel = next(r for r in result['relationships'] if r['from_table'] == 'orders')
    assert rel == {
        'from_table': 'orders',
        'to_table': 'customers',
        'from_column': 'customer_id',
        'to_column': 'id',
        'type': 'many-to-one',
    }
    assert len(result['relationships']) == 3


def test_schema_view_includes_inline_references(library_sql):
    result = SQLDDLParser().parse(library_sql)

    books = result['tables'][1]
    assert books['foreign_keys'] == [{
        'column': 'author_id',
        'columns': ['author_id'],
        'references_table': 'authors',
        'references_column': 'id',
        'on_delete': None,
        'on_update': None,
    }]
    assert result['relationships'][0]['from_table'] == 'books'


def test_garbage_input_is_not_fatal():
    tables = parse_tables("""
        INSERT INTO users (name) VALUES ('x');
        CREATE TABLE ;
        CREATE TABLE ok (id INT PRIMARY KEY, = bad clause, name TEXT);
        ALTER TABLE ok ADD FOREIGN KEY () REFERENCES nowhere();
    """)

    assert list(tables) == ['ok']
    assert [c['name'] for c in tables['ok']['columns']] == ['id', 'name']
    assert tables['ok']['foreign_keys'] == []


def test_column_name_may_start_with_digit():
    column = parse_column_definition('2fa_code VARCHAR(6) NOT NULL')
    assert column['name'] == '2fa_code'
    assert column['type'] == 'VARCHAR(6)'


def test_key_and_index_are_column_names_too():
    """Only KEY/INDEX followed by a column list is an index clause"""
    tables = parse_tables("""
        CREATE TABLE settings (
            id INT PRIMARY KEY,
            key VARCHAR(100) NOT NULL,
            value TEXT,
            KEY idx_settings_key (key),
            UNIQUE KEY uq_value (value)
        );
        CREATE TABLE pages (
            id INT PRIMARY KEY,
            `index` INT,
            title TEXT,
            INDEX (title),
            INDEX idx_pages USING BTREE (`index`),
            FULLTEXT KEY ft_title (title)
        );
    """)

    assert [c['name'] for c in tables['settings']['columns']] == ['id', 'key', 'value']
    assert tables['settings']['columns'][1]['type'] == 'VARCHAR(100)'
    assert [c['name'] for c in tables['pages']['columns']] == ['id', 'index', 'title']
    assert tables['pages']['columns'][1]['type'] == 'INT'


def test_create_table_variants():
    tables = parse_tables("""
        CREATE GLOBAL TEMPORARY TABLE scratch (id INT);
        CREATE UNLOGGED TABLE events (id INT);
        CREATE TEMP TABLE IF NOT EXISTS "public"."staging" (id INT);
        CREATE OR REPLACE VIEW v AS SELECT 1;
    """)
    assert list(tables) == ['scratch', 'events', 'staging']
