"""
models/ - Domain Layer
======================
Dataclasses for stored records (transactions, budgets, recurring definitions,
saved reports), the derived aggregates computed from them, and the
ServiceResult pair returned by every service.
"""
