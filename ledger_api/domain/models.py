"""
Domain models for the ledger API.

Defines the account and transaction rows aligned with the schema in
`ledger_api.infrastructure.schema`, plus the request and response views
exchanged at the HTTP boundary. Response field aliases are the wire names.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, Field, StrictInt

DESCRIPTION_MIN_LENGTH = 1
DESCRIPTION_MAX_LENGTH = 10
# largest amount a single transaction may carry; balances are BIGINT
MAX_AMOUNT = 2**31 - 1


class TransactionKind(str, Enum):
    CREDIT = "c"
    DEBIT = "d"


class Account(BaseModel):
    """
    Representation of a single row in the `accounts` table.
    """

    id: int = Field(..., description="Provisioned account id.")
    limit: int = Field(..., description="Overdraft limit; balance may not go below -limit.")
    balance: int = Field(..., description="Current signed balance.")

    model_config = {"frozen": True}


class Transaction(BaseModel):
    """
    Representation of a single row in the `transactions` table.
    """

    client_id: int = Field(..., description="Owning account id.")
    amount: int = Field(..., gt=0, description="Positive amount; direction is in `kind`.")
    kind: TransactionKind = Field(..., description="Credit or debit.")
    description: str = Field(
        ..., min_length=DESCRIPTION_MIN_LENGTH, max_length=DESCRIPTION_MAX_LENGTH
    )
    created_at: datetime = Field(..., description="Server-assigned write timestamp.")

    model_config = {"frozen": True}


class TransactionRequest(BaseModel):
    """Body of `POST /clients/{id}/transactions`."""

    value: StrictInt = Field(..., gt=0, le=MAX_AMOUNT)
    type: TransactionKind
    description: str = Field(
        ..., min_length=DESCRIPTION_MIN_LENGTH, max_length=DESCRIPTION_MAX_LENGTH
    )


class BalanceView(BaseModel):
    """Result of a successful transaction: the post-commit balance and limit."""

    limit: int
    balance: int

    model_config = {"frozen": True}


class StatementBalance(BaseModel):
    total: int
    limit: int
    as_of: datetime = Field(..., alias="statementDate")

    model_config = {"populate_by_name": True}


class StatementEntry(BaseModel):
    value: int
    type: TransactionKind
    description: str
    created_at: datetime = Field(..., alias="createdAt")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_transaction(cls, tx: Transaction) -> "StatementEntry":
        return cls(
            value=tx.amount,
            type=tx.kind,
            description=tx.description,
            created_at=tx.created_at,
        )


class Statement(BaseModel):
    """Point-in-time view of an account: balance plus its newest transactions."""

    balance: StatementBalance
    last_transactions: List[StatementEntry] = Field(
        default_factory=list, alias="lastTransactions"
    )

    model_config = {"populate_by_name": True}


__all__ = [
    "DESCRIPTION_MAX_LENGTH",
    "DESCRIPTION_MIN_LENGTH",
    "MAX_AMOUNT",
    "Account",
    "BalanceView",
    "Statement",
    "StatementBalance",
    "StatementEntry",
    "Transaction",
    "TransactionKind",
    "TransactionRequest",
]
