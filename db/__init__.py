"""
db/ - Database Layer
====================
PostgreSQL connection pool and schema initialization.
This layer is the lowest in the architecture and depends only on config and logging.
"""
