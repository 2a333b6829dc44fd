"""Church finance ledger API endpoints (income and expenses)."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from churchadmin.api.deps import get_db, get_current_user
from churchadmin.api.schemas.finance import TransactionCreate, TransactionUpdate
from churchadmin.core.errors import NotFound, ValidationFailed
from churchadmin.core.rbac import UserContext, require_permission
from churchadmin.core.validation import sanitize_dict, validate_transaction
from churchadmin.db.models import FinanceTransaction
from churchadmin.db.session import commit_or_conflict

router = APIRouter(prefix="/finance", tags=["finance"])


def _get_transaction(db: Session, transaction_id: str) -> FinanceTransaction:
    transaction = db.get(FinanceTransaction, transaction_id)
    if transaction is None or transaction.status == "deleted":
        raise NotFound("Transaction")
    return transaction


@router.get("")
@require_permission("finance:read")
async def list_transactions(
    transaction_type: Optional[str] = Query(None, alias="type"),
    category: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    """Transactions matching every filter, newest first, with income, expense and balance."""
    query = db.query(FinanceTransaction).filter(FinanceTransaction.status != "deleted")
    if transaction_type:
        query = query.filter(FinanceTransaction.type == transaction_type)
    if category:
        query = query.filter(FinanceTransaction.category == category)
    if start_date:
        query = query.filter(FinanceTransaction.date >= start_date)
    if end_date:
        query = query.filter(FinanceTransaction.date <= end_date)

    transactions = query.order_by(
        FinanceTransaction.date.desc(), FinanceTransaction.created_at.desc()
    ).all()
    income = sum(t.amount for t in transactions if t.type == "income")
    expense = sum(t.amount for t in transactions if t.type == "expense")
    return {
        "transactions": [t.to_dict() for t in transactions],
        "income": income,
        "expense": expense,
        "balance": income - expense,
        "count": len(transactions),
    }


@router.get("/{transaction_id}")
@require_permission("finance:read")
async def get_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    return {"transaction": _get_transaction(db, transaction_id).to_dict()}


@router.post("", status_code=status.HTTP_201_CREATED)
@require_permission("finance:create")
async def create_transaction(
    transaction_in: TransactionCreate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    data = sanitize_dict(transaction_in.model_dump())
    validate_transaction(data)

    transaction = FinanceTransaction(
        type=data["type"],
        category=data.get("category") or "",
        amount=data["amount"],
        date=data.get("date") or date.today(),
        description=data.get("description") or "",
        receipt_url=data.get("receipt_url") or "",
        approved_by=data.get("approved_by") or "",
        created_by=current_user.user_id,
        status="active",
    )
    db.add(transaction)
    commit_or_conflict(db)
    db.refresh(transaction)
    return {"message": "Transaction recorded", "transaction": transaction.to_dict()}


@router.put("/{transaction_id}")
@require_permission("finance:update")
async def update_transaction(
    transaction_id: str,
    transaction_in: TransactionUpdate,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    transaction = _get_transaction(db, transaction_id)
    data = sanitize_dict(transaction_in.model_dump(exclude_unset=True))
    validate_transaction(data, partial=True)
    if "date" in data and data["date"] is None:
        raise ValidationFailed({"date": "Date is required"})

    for key, value in data.items():
        setattr(transaction, key, "" if value is None else value)
    commit_or_conflict(db)
    db.refresh(transaction)
    return {"message": "Transaction updated", "transaction": transaction.to_dict()}


@router.delete("/{transaction_id}")
@require_permission("finance:delete")
async def delete_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    transaction = _get_transaction(db, transaction_id)
    transaction.status = "deleted"
    commit_or_conflict(db)
    return {"message": "Transaction deleted"}
