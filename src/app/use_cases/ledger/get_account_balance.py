"""Get Account Balance Use Case

Retrieves an account's current balance.
"""

from src.libs.result import Result, Return, Error
from src.app.repositories.account_repository import AccountRepository
from .dtos import AccountBalanceResponseDTO


class GetAccountBalance:
    """
    Get Account Balance Use Case

    Read-only; the balance is the cached value maintained by the ledger
    engines under lock.
    """

    def __init__(self, account_repo: AccountRepository):
        self.account_repo = account_repo

    async def execute(self, account_id: int) -> Result[AccountBalanceResponseDTO]:
        """
        Execute get balance operation

        Errors:
            ACCOUNT_NOT_FOUND: No account with this ID
        """
        account = await self.account_repo.get_by_id(account_id)

        if not account:
            return Return.err(
                Error(
                    code="ACCOUNT_NOT_FOUND",
                    message=f"Account {account_id} not found",
                )
            )

        return Return.ok(
            AccountBalanceResponseDTO(
                account_id=account.id,
                company_id=account.company_id,
                currency=account.currency,
                initial_balance=account.initial_balance,
                current_balance=account.current_balance,
                last_updated=account.updated_at,
            )
        )
