from sqlalchemy import BigInteger, Integer

# Use BigInteger by default, with a SQLite-safe Integer variant for integer PKs.
ID_TYPE = BigInteger().with_variant(Integer, "sqlite")

# Unix timestamps in seconds; draws may run well past 2038.
TIMESTAMP_TYPE = BigInteger().with_variant(Integer, "sqlite")
