"""
db/ - Database Layer
====================
Handles the PostgreSQL connection pool, the table registry and schema bootstrap.
This layer is the lowest in the architecture; only the bootstrap module reaches
up into repositories/ to seed the privileged account.
"""
