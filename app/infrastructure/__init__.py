"""
Infrastructure layer package.

Contains concrete implementations (adapters) of the ports
defined in the domain layer: the relational ledger store and
outbound notification channels.
"""
