"""
Procurement Kernel

Pure building blocks for the requisition engine:
- Money rules for line amounts with manual override
- Stable priority/category ordering and subtotal grouping
- Workflow state machine value objects
- Typed exceptions, structured logging, injectable clock and ids
- SQLAlchemy base and engine for SQL-backed stores
"""

__version__ = "0.1.0"
