"""Utility for resolving account names to IDs."""

from cashledger.domain.account import AccountService
from cashledger.domain.errors import NotFoundError, account_not_found


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve account name or ID to account ID.

    Args:
        account_service: AccountService instance
        account: Account name, or ID as int or numeric string

    Returns:
        Account ID

    Raises:
        NotFoundError: If no account matches
    """
    if isinstance(account, int) or str(account).strip().isdigit():
        account_id = int(account)
        if account_service.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        return account_id

    found = account_service.db.get_account_by_name(str(account).strip())
    if found is None:
        raise NotFoundError(f"Account '{account}' not found")
    return found.id
