from decimal import Decimal
from sqlalchemy import Numeric, String
from sqlalchemy.types import TypeDecorator

class MoneyType(TypeDecorator):
    """
    Exact decimal column.

    NUMERIC(65, 30) where the database has a real decimal type. SQLite has
    none and would hand values back as floats, so there the value is kept as
    its decimal string.
    """
    impl = Numeric(65, 30)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(80))
        return dialect.type_descriptor(Numeric(65, 30, asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = value if isinstance(value, Decimal) else Decimal(str(value))
        if dialect.name == "sqlite":
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        # normalize() drops the NUMERIC(65, 30) padding zeros
        return Decimal(str(value)).normalize() + Decimal(0)
