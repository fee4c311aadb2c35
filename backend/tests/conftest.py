import pytest


@pytest.fixture
def library_sql():
    """Authors/books schema with an inline foreign key"""
    return """
        CREATE TABLE authors (id INT PRIMARY KEY, name VARCHAR(100) NOT NULL);
        CREATE TABLE books (
            id INT PRIMARY KEY,
            title VARCHAR(200) NOT NULL,
            author_id INT REFERENCES authors(id)
        );
    """


@pytest.fixture
def shop_sql():
    """Schema using table-level, ALTER TABLE and junction-table foreign keys"""
    return """
        -- customers and their orders
        CREATE TABLE IF NOT EXISTS customers (
            id BIGSERIAL PRIMARY KEY,
            email VARCHAR(120) NOT NULL UNIQUE,
            full_name VARCHAR(255),
            created_at TIMESTAMP
        );

        /* orders reference customers through ALTER TABLE below */
        CREATE TABLE orders (
            id BIGSERIAL PRIMARY KEY,
            customer_id BIGINT NOT NULL,
            total DECIMAL(10,2) NOT NULL,
            placed_on DATE
        );

        CREATE TABLE products (
            id BIGSERIAL PRIMARY KEY,
            sku CHAR(12) NOT NULL UNIQUE,
            price NUMERIC(12, 2),
            active BOOLEAN DEFAULT true
        );

        CREATE TABLE product_orders (
            id BIGSERIAL PRIMARY KEY,
            order_id BIGINT NOT NULL,
            product_id BIGINT NOT NULL,
            CONSTRAINT fk_po_order FOREIGN KEY (order_id) REFERENCES orders(id),
            CONSTRAINT fk_po_product FOREIGN KEY (product_id) REFERENCES products(id)
        );

        ALTER TABLE ONLY orders
            ADD CONSTRAINT fk_orders_customer
            FOREIGN KEY (customer_id)
            REFERENCES customers(id)
            ON DELETE CASCADE;
    """


@pytest.fixture
def manager():
    from parsers.parser_manager import ParserManager
    return ParserManager()
