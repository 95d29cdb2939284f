"""Account API Routes

Read-only views of account balances and ledger history.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.use_cases.ledger.dtos import AccountBalanceResponseDTO, ListTransactionsResponseDTO
from src.app.use_cases.ledger.get_account_balance import GetAccountBalance
from src.app.use_cases.ledger.list_account_transactions import ListAccountTransactions
from src.adapter.repositories.account_repository import SqlAlchemyAccountRepository
from src.adapter.repositories.ledger_transaction_repository import SqlAlchemyLedgerTransactionRepository
from src.depends import get_session
from src.api.error import ClientError

router = APIRouter(prefix="/ledger/accounts", tags=["Accounts"])


@router.get(
    "/{account_id}/balance",
    response_model=AccountBalanceResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        404: {
            "description": "Account not found",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "ACCOUNT_NOT_FOUND",
                            "message": "Account 7 not found"
                        }
                    }
                }
            }
        }
    }
)
async def get_account_balance(
    account_id: int,
    session: AsyncSession = Depends(get_session)
):
    """
    Get the current balance of an account.

    **Example response:**
    ```json
    {
      "account_id": 7,
      "company_id": "company_wif",
      "currency": "JPY",
      "initial_balance": "5000.00",
      "current_balance": "5500.00",
      "last_updated": "2025-01-01T09:00:00Z"
    }
    ```
    """
    use_case = GetAccountBalance(SqlAlchemyAccountRepository(session))
    result = await use_case.execute(account_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/{account_id}/transactions",
    response_model=ListTransactionsResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def list_account_transactions(
    account_id: int,
    limit: int = Query(default=20, ge=1, le=100, description="Page size"),
    offset: int = Query(default=0, ge=0, description="Number of transactions to skip"),
    session: AsyncSession = Depends(get_session)
):
    """
    List an account's ledger transactions, newest first.

    Reversals carry `metadata.is_reversal` and the id of the transaction
    they undo.
    """
    use_case = ListAccountTransactions(SqlAlchemyLedgerTransactionRepository(session))
    result = await use_case.execute(account_id, limit=limit, offset=offset)

    if result.is_err():
        raise ClientError(result.error)

    return result.value
