"""
Domain Layer - Pure Value Semantics

This layer contains:
- Value Objects: Immutable objects without identity (MicroDateTime)
- Interfaces: Contracts for the calendar engine and localized formatter
- Exceptions: Construction and mutation failures

No dependencies on the infrastructure layer at import time.
"""
