"""Database layer: SQLAlchemy models, sessions and the SQL permission store."""
