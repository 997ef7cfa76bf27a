# routers/ledger.py

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.summaries import ledger_entries
from schemas.payouts import LedgerEntryOut

router = APIRouter(prefix="/ledger", tags=["Ledger"])


# -------------------------------------------------
# GET /ledger/{platform} → orders + payouts, newest first
# -------------------------------------------------
@router.get("/{platform}", response_model=List[LedgerEntryOut])
def platform_ledger(platform: str, db: Session = Depends(get_db)):
    return ledger_entries(db, platform)
