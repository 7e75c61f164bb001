"""
Crew Ledger - Source Package

Shared income/expense ledger for a small team: dashboards, team
spending attribution and payment-channel statements.

DESIGN PRINCIPLES:
1. Aggregation is pure: snapshot in, figures out
2. Bad records degrade one view, never the whole dashboard
3. Network failures stay at the edges
4. Every change to the ledger is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Crew Ledger Team"
