"""
repositories/ - Data Access Layer
==================================
Each repository encapsulates all SQL queries for one table.
Repositories receive raw rows from the database and return domain model objects;
driver errors are logged and re-raised for the services to wrap.
"""
