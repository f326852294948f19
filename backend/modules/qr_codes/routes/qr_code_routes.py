# backend/modules/qr_codes/routes/qr_code_routes.py

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List

from core.database import get_db
from ..schemas.qr_schemas import (
    QRCodeCreate,
    QRCodeUpdate,
    QRCodeResponse,
    QRScanResponse,
    QRCodeList,
    BusinessQRStats,
)
from ..services.qr_registry import QRCodeRegistry

router = APIRouter(prefix="/qr-codes", tags=["qr-codes"])


@router.post("", response_model=QRCodeResponse, status_code=status.HTTP_201_CREATED)
def create_qr_code(payload: QRCodeCreate, db: Session = Depends(get_db)):
    """Create a new active QR code for a business"""
    config = payload.model_dump(exclude={"business_id", "code_type"}, exclude_none=True)
    return QRCodeRegistry(db).create(payload.business_id, payload.code_type, config)


@router.get("/business/{business_id}", response_model=QRCodeList)
def list_business_qr_codes(
    business_id: str,
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
):
    items = QRCodeRegistry(db).list_for_business(business_id, active_only=active_only)
    return QRCodeList(items=items, total=len(items))


@router.get("/business/{business_id}/stats", response_model=BusinessQRStats)
def get_business_qr_stats(business_id: str, db: Session = Depends(get_db)):
    return QRCodeRegistry(db).business_stats(business_id)


@router.get("/{qr_id}", response_model=QRCodeResponse)
def get_qr_code(qr_id: str, db: Session = Depends(get_db)):
    return QRCodeRegistry(db).get(qr_id)


@router.patch("/{qr_id}", response_model=QRCodeResponse)
def update_qr_code(qr_id: str, payload: QRCodeUpdate, db: Session = Depends(get_db)):
    """Change limits, expiry or reward value; the scan counter is never writable"""
    return QRCodeRegistry(db).update(qr_id, payload.model_dump(exclude_unset=True))


@router.post("/{qr_id}/deactivate", response_model=QRCodeResponse)
def deactivate_qr_code(qr_id: str, db: Session = Depends(get_db)):
    return QRCodeRegistry(db).deactivate(qr_id)


@router.post("/{qr_id}/reactivate", response_model=QRCodeResponse)
def reactivate_qr_code(qr_id: str, db: Session = Depends(get_db)):
    return QRCodeRegistry(db).reactivate(qr_id)


@router.get("/{qr_id}/scans", response_model=List[QRScanResponse])
def list_qr_code_scans(
    qr_id: str,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return QRCodeRegistry(db).list_scans(qr_id, limit=limit)
