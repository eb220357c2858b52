"""
Application layer for the brokerage bounded context.

Use cases coordinate domain entities and ports to fulfill
business operations. Each one runs inside a UnitOfWork obtained
from an injected factory. No framework or infrastructure imports allowed.
"""
