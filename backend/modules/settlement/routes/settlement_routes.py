# backend/modules/settlement/routes/settlement_routes.py

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from core.notification_service import notification_service
from modules.commissions.services.proration import ProrationEngine
from ..schemas.settlement_schemas import (
    ScanRequest,
    ScanResponse,
    SettleTransactionRequest,
    CommissionBreakdownResponse,
    ProrateRequest,
    ProrateResponse,
    ProrateRefundRequest,
    ProrateRefundResponse,
)
from ..services.settlement_coordinator import SettlementCoordinator

router = APIRouter(tags=["settlement"])


def _background_dispatcher(background_tasks: BackgroundTasks):
    """Queue notifications to run after the response is sent"""

    def dispatch(user_id, notification_type, payload):
        background_tasks.add_task(
            notification_service.notify, user_id, notification_type, payload
        )

    return dispatch


@router.post("/scan", response_model=ScanResponse)
def scan_qr_code(
    payload: ScanRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """
    Redeem a QR code.

    An inadmissible scan is a normal response with admissible=false and a
    single reason: INACTIVE, EXPIRED or LIMIT_REACHED.
    """
    coordinator = SettlementCoordinator(
        db, dispatcher=_background_dispatcher(background_tasks)
    )
    outcome = coordinator.process_scan(
        qr_id=payload.qr_code_id,
        customer_id=payload.customer_id,
        latitude=payload.location.latitude if payload.location else None,
        longitude=payload.location.longitude if payload.location else None,
        order_total=payload.order_total,
        referral_scan_id=payload.referral_scan_id,
    )
    return ScanResponse(
        admissible=outcome.admissible,
        reason=outcome.reason,
        points_awarded=outcome.points_awarded,
        discount_applied=outcome.discount_applied,
        scan_id=outcome.scan_id,
        referral_converted=outcome.referral_converted,
    )


@router.post("/settle-transaction", response_model=CommissionBreakdownResponse)
def settle_transaction(
    payload: SettleTransactionRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Split a transaction between platform, business and agent; safe to retry"""
    coordinator = SettlementCoordinator(
        db, dispatcher=_background_dispatcher(background_tasks)
    )
    breakdown, created = coordinator.settle_transaction(
        transaction_id=payload.transaction_id,
        gross_amount=payload.gross_amount,
        business_id=payload.business_id,
        agent_id=payload.agent_id,
        transaction_type=payload.transaction_type,
    )
    response = CommissionBreakdownResponse.model_validate(breakdown)
    response.already_settled = not created
    return response


@router.post("/prorate", response_model=ProrateResponse)
def prorate(payload: ProrateRequest):
    amount = ProrationEngine.validate(payload.full_amount, payload.days_used, payload.total_days)
    return ProrateResponse(
        prorated_amount=ProrationEngine.prorate(amount, payload.days_used, payload.total_days)
    )


@router.post("/prorate-refund", response_model=ProrateRefundResponse)
def prorate_refund(payload: ProrateRefundRequest):
    amount = ProrationEngine.validate(
        payload.original_amount, payload.days_used, payload.total_days
    )
    return ProrateRefundResponse(
        refund_amount=ProrationEngine.refund(amount, payload.days_used, payload.total_days)
    )
