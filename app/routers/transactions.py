from typing import Optional
import logging

from fastapi import APIRouter, File, Form, Query, UploadFile, status

from app.core.errors import ApiError
from app.db import dynamo
from app.models.transaction import TransactionCreate, TransactionInDB, TransactionPublic, TransactionUpdate
from app.utils.aggregator import net_change
from app.utils.csv_import import CsvImportError, parse_transactions_csv
from app.utils.events import TransactionMutated, publish

router = APIRouter()
logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


def _get_transaction_or_404(transaction_id: int) -> dict:
    transaction = dynamo.get_transaction(transaction_id)
    if not transaction:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Transaction not found", "NOT_FOUND")
    return transaction


def _get_user_or_400(user_id: int) -> dict:
    user = dynamo.get_user_by_id(user_id)
    if not user:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "User not found", "USER_NOT_FOUND")
    return user


def _apply_to_balance(user: dict, transactions: list) -> float:
    """Credits raise the balance and debits lower it. Returns the new balance."""
    new_balance = round(float(user.get("balance", 0)) + net_change(transactions), 2)
    if not dynamo.update_user(user["id"], {"balance": new_balance}):
        raise ApiError(500, "Failed to update balance", "DATABASE_ERROR")
    return new_balance


@router.get("")
def list_or_get_transactions(
    transaction_id: Optional[int] = Query(None, alias="id"),
    user_id: Optional[int] = Query(None, alias="userId"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    offset: int = Query(0, ge=0),
):
    if transaction_id is not None:
        return TransactionPublic(**_get_transaction_or_404(transaction_id))

    if user_id is None:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST, "userId is required for listing transactions", "MISSING_USER_ID"
        )

    limit = min(limit, MAX_PAGE_SIZE)
    transactions = sorted(
        dynamo.get_transactions_for_user(user_id),
        key=lambda t: (t["date"], t["id"]),
        reverse=True,
    )
    page = transactions[offset:offset + limit]
    return {"transactions": [TransactionPublic(**t) for t in page]}


@router.get("/{transaction_id}", response_model=TransactionPublic)
def get_transaction(transaction_id: int):
    return TransactionPublic(**_get_transaction_or_404(transaction_id))


@router.post("", response_model=TransactionPublic, status_code=status.HTTP_201_CREATED)
def create_transaction(transaction: TransactionCreate):
    user = _get_user_or_400(transaction.user_id)

    transaction_db = TransactionInDB(id=dynamo.next_id("transactions"), **transaction.model_dump())
    if not dynamo.put_transaction(transaction_db.model_dump()):
        raise ApiError(500, "Failed to save transaction", "DATABASE_ERROR")

    _apply_to_balance(user, [transaction_db.model_dump()])
    publish(TransactionMutated(user_id=user["id"]))
    return TransactionPublic(**transaction_db.model_dump())


def _apply_transaction_update(transaction_id: int, transaction_update: TransactionUpdate) -> TransactionPublic:
    existing = _get_transaction_or_404(transaction_id)
    updates = transaction_update.model_dump(exclude_unset=True)
    if not updates:
        return TransactionPublic(**existing)

    updated = dynamo.update_transaction(transaction_id, updates)
    if not updated:
        raise ApiError(500, "Failed to update transaction", "DATABASE_ERROR")

    publish(TransactionMutated(user_id=existing["user_id"]))
    return TransactionPublic(**updated)


@router.put("", response_model=TransactionPublic)
def update_transaction_by_query(
    transaction_update: TransactionUpdate,
    transaction_id: int = Query(..., alias="id"),
):
    return _apply_transaction_update(transaction_id, transaction_update)


@router.put("/{transaction_id}", response_model=TransactionPublic)
def update_transaction(transaction_id: int, transaction_update: TransactionUpdate):
    return _apply_transaction_update(transaction_id, transaction_update)


def _delete_transaction(transaction_id: int) -> dict:
    existing = _get_transaction_or_404(transaction_id)
    deleted = dynamo.delete_transaction(transaction_id)
    if not deleted:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Transaction not found", "NOT_FOUND")

    publish(TransactionMutated(user_id=existing["user_id"]))
    return {"message": "Transaction deleted successfully", "transaction": TransactionPublic(**deleted)}


@router.delete("")
def delete_transaction_by_query(transaction_id: int = Query(..., alias="id")):
    return _delete_transaction(transaction_id)


@router.delete("/{transaction_id}")
def delete_transaction(transaction_id: int):
    return _delete_transaction(transaction_id)


@router.post("/upload-csv", status_code=status.HTTP_201_CREATED)
def upload_csv(
    file: UploadFile = File(...),
    user_id: int = Form(..., alias="userId"),
):
    """
    Bulk-import transactions from a CSV with columns
    date,category,amount,merchant[,type,description]. Valid rows are committed
    even when other rows fail validation.
    """
    if not (file.filename or "").lower().endswith(".csv"):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Only CSV files are allowed", "INVALID_FILE_TYPE")

    user = _get_user_or_400(user_id)

    try:
        text = file.file.read().decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "CSV file must be UTF-8 encoded", "INVALID_CSV_ENCODING")
    try:
        parsed = parse_transactions_csv(text)
    except CsvImportError as e:
        raise ApiError(status.HTTP_400_BAD_REQUEST, e.message, e.code, **e.extra)

    if not parsed.rows:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            "No valid transactions found in CSV",
            "NO_VALID_TRANSACTIONS",
            errors=parsed.errors,
        )

    transactions = [
        TransactionInDB(id=dynamo.next_id("transactions"), user_id=user_id, **row).model_dump()
        for row in parsed.rows
    ]
    if not dynamo.put_transactions(transactions):
        raise ApiError(500, "Failed to save imported transactions", "DATABASE_ERROR")

    balance_change = round(net_change(transactions), 2)
    new_balance = _apply_to_balance(user, transactions)
    publish(TransactionMutated(user_id=user_id))

    logger.info(f"Imported {len(transactions)} transactions for user {user_id} ({len(parsed.errors)} rejected)")
    return {
        "message": "CSV uploaded successfully",
        "imported": len(transactions),
        "errors": parsed.errors,
        "balanceChange": balance_change,
        "newBalance": new_balance,
        "transactions": [TransactionPublic(**t) for t in transactions],
    }
