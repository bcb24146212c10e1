"""
database: async SQLAlchemy engine, the ``users`` table and the credential
store built on top of it.
"""
