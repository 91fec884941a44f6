"""
utils/ - Shared helpers: logging, error types and date arithmetic.
"""
