"""
Infrastructure adapters for the brokerage bounded context.

Each adapter implements a domain port (ABC) on top of SQLAlchemy
or an outbound channel such as an HTTP webhook.
"""
