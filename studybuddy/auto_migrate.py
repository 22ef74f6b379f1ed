"""
Automatic database migration system.
Compares SQLAlchemy models with actual database schema and adds missing columns.
"""
import logging
from sqlalchemy import Integer, inspect, text
from sqlalchemy.exc import SQLAlchemyError

from studybuddy.database import Base, Database
from studybuddy import models  # noqa: F401  register all models

logger = logging.getLogger("studybuddy.migrations")


def get_default_value(column) -> str:
    """Get default value for a column in SQL format"""
    default = column.default

    if default is not None and hasattr(default, "arg"):
        value = default.arg

        # Callable defaults (like datetime.now)
        if callable(value):
            if "datetime" in str(value) or "now" in getattr(value, "__name__", ""):
                return "CURRENT_TIMESTAMP"
            return "NULL"

        if isinstance(value, bool):
            return "1" if value else "0"
        elif isinstance(value, (int, float)):
            return str(value)
        elif isinstance(value, str):
            escaped = value.replace("'", "''")
            return f"'{escaped}'"

    # Existing rows need a value for NOT NULL integers (e.g. the version counter)
    if not column.nullable and isinstance(column.type, Integer):
        return "0"

    return "NULL"


def auto_migrate(database: Database) -> int:
    """
    Automatically migrate database schema.
    Adds missing columns based on SQLAlchemy models.

    Args:
        database: Open database handle

    Returns:
        Number of columns added
    """
    logger.info("Starting automatic schema migration...")

    engine = database.engine
    inspector = inspect(engine)
    existing_tables = inspector.get_table_names()
    migrations_applied = 0

    with engine.begin() as conn:
        for table_name, table in Base.metadata.tables.items():
            if table_name not in existing_tables:
                logger.warning(f"Table '{table_name}' doesn't exist. Run Database.create_all() first.")
                continue

            existing_columns = {c["name"] for c in inspector.get_columns(table_name)}

            for column in table.columns:
                if column.name in existing_columns:
                    continue

                column_type = column.type.compile(dialect=engine.dialect)
                default_value = get_default_value(column)

                alter_sql = f"ALTER TABLE {table_name} ADD COLUMN {column.name} {column_type}"
                if default_value != "NULL":
                    alter_sql += f" DEFAULT {default_value}"
                    # NOT NULL is only safe on ALTER when a default fills old rows
                    if not column.nullable:
                        alter_sql += " NOT NULL"

                logger.info(f"Adding column '{column.name}' to table '{table_name}'")
                logger.debug(f"SQL: {alter_sql}")

                try:
                    conn.execute(text(alter_sql))
                    migrations_applied += 1
                except SQLAlchemyError as e:
                    logger.error(f"Failed to add column {table_name}.{column.name}: {e}")
                    raise

    if migrations_applied > 0:
        logger.info(f"Migration completed: {migrations_applied} column(s) added")
    else:
        logger.info("Schema is up to date - no migrations needed")

    return migrations_applied
