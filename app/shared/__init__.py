"""
Cross-cutting pieces of the ledger service.

- errors: domain error to HTTP response mapping
- security: secure headers and slowapi rate limits
- logging: log format and logger levels
- clock: timezone-aware UTC timestamps for ledger records
"""
