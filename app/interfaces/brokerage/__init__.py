"""
HTTP interface for the brokerage bounded context.
"""
