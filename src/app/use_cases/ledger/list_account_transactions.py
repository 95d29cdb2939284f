"""
List Account Transactions Use Case

Retrieves the ledger history of an account with pagination.
"""
from src.libs.result import Result, Return
from src.app.repositories.ledger_transaction_repository import LedgerTransactionRepository
from .dtos import LedgerTransactionDTO, ListTransactionsResponseDTO


class ListAccountTransactions:
    """
    Use case: View account transactions

    Transactions are ordered by created_at DESC (most recent first).
    Reversals are listed alongside the applications they undo.
    """

    def __init__(self, transaction_repo: LedgerTransactionRepository):
        self.transaction_repo = transaction_repo

    async def execute(
        self, account_id: int, limit: int = 20, offset: int = 0
    ) -> Result[ListTransactionsResponseDTO]:
        """
        List transactions for an account with pagination.

        Args:
            account_id: Account ID
            limit: Maximum number of transactions to return (default 20)
            offset: Number of transactions to skip (default 0)
        """
        transactions, total = await self.transaction_repo.get_by_account_id(
            account_id=account_id,
            limit=limit,
            offset=offset,
        )

        return Return.ok(
            ListTransactionsResponseDTO(
                transactions=[LedgerTransactionDTO.from_entity(txn) for txn in transactions],
                total=total,
                limit=limit,
                offset=offset,
            )
        )
