"""Database-agnostic type definitions for SQLAlchemy models.

This module provides type definitions that work with both SQLite and PostgreSQL.
"""
from sqlalchemy import Numeric, Uuid

# Native UUID on PostgreSQL, CHAR(32) on SQLite
UUIDType = Uuid

# Money is stored as fixed-point, never as a binary float
MoneyType = Numeric(18, 2, asdecimal=True)

# Exchange rates carry six decimal places
RateType = Numeric(18, 6, asdecimal=True)

# Percentages (discount, GST rate)
PercentType = Numeric(7, 3, asdecimal=True)

# Quantities allow fractional units (kg, metres)
QuantityType = Numeric(18, 3, asdecimal=True)
