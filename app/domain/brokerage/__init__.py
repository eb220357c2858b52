"""
Brokerage bounded context: domain layer.

This module contains all domain logic for the brokerage context:
- Account balances and the single balance mutation rule
- Trade settlement and copy-trading fan-out rules
- Investment plan terms
- Ports for the ledger store and notifications
"""
