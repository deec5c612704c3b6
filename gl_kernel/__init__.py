"""
GL Kernel - multi-tenant general ledger engine

A double-entry journal store with:
- Balanced journal validation (0.01 tolerance)
- Draft / Posted / Voided lifecycle
- Period control against open accounting periods
- Gap-tolerant, never-reused journal numbering per tenant and year
- Full-recompute account balance cache
"""

__version__ = "0.1.0"
