"""
repositories/ - Data Access Layer
==================================
Each repository encapsulates the SQL for a specific table.
Repositories work on a cursor handed in by the caller.
"""
