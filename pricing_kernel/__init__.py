"""
Work-order pricing kernel.

Value objects, domain DTOs, typed exceptions, structured logging and the
read-only ledger persistence layer shared by the pricing engines and
services.
"""

__version__ = "0.1.0"
