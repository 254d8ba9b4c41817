"""
finledger - Source Package

The financial domain engine behind a personal finance tracker:
expenses, budgets, savings goals, recurring transactions and the
insights/alerts derived from them.

DESIGN PRINCIPLES:
1. One explicit ledger owner, no global state
2. Fail visibly (unknown ids and failed writes raise)
3. Derived views are recomputed, never patched
4. Side effects leave the core as an outbox
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "finledger team"
