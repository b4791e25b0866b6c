"""Domain layer for cashledger application.

Services live in their own modules (cashledger.domain.account,
cashledger.domain.transaction, ...) and are imported from there.
"""
