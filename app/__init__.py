"""
Brokerage Ledger: accounts, trade execution, copy trading and investments.

Application package root. This is a modular monolith using
hexagonal architecture (ports & adapters) with domain-driven design.

Bounded contexts:
    - brokerage: Balances, trade execution with copy-trading fan-out,
      deposits/withdrawals, investment plans, KYC.

Layers:
    - domain: Pure business logic, entities, ports (ABCs), errors.
    - application: Use cases, DTOs, orchestration.
    - infrastructure: Adapters (SQLAlchemy, notifications) implementing domain ports.
    - interfaces: FastAPI routers, Pydantic schemas.
    - shared: Cross-cutting concerns (errors, security, logging).
"""
