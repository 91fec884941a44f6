"""
services/ - Business Logic Layer
================================
Pure aggregation, budget and recurrence functions, plus thin service classes
that fetch their inputs through injected repositories.
"""
