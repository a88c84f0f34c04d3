"""
roobaroo - event registration API.

Captures visitor registrations (name, email, phone, attendance status),
validates and deduplicates them, stores them in PostgreSQL and returns a
confirmation for the payment step.
"""

__version__ = "0.1.0"
