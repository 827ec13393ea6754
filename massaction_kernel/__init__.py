"""
Mass Action Kernel

Shared infrastructure for the mass action scheduler:
- Structured JSON logging with request-scoped context
- Typed exception hierarchy with machine-readable codes
- Injectable clock
- SQLAlchemy declarative base and session helpers
- Key normalization for row mappings and job ids
"""

__version__ = "0.1.0"
