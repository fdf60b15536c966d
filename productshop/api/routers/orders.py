# productshop/api/routers/orders.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from productshop.data.database import get_db
from productshop.domain.errors import (
    NotFoundError,
    PreconditionFailedError,
    StockBusyError,
    StockConflictError,
)
from productshop.domain.schemas import (
    OrderDetailOut,
    OrderPageOut,
    OrderStatusOut,
    PayIn,
    PaymentOut,
    PreviewIn,
    PreviewOut,
)
from productshop.services.lock_service import LockService
from productshop.services.notification_service import NotificationService
from productshop.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_lock_service() -> LockService:
    return LockService()


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_service(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> OrderService:
    return OrderService(
        db=db,
        lock_service=lock_service,
        notification_service=notification_service,
    )


@router.post("/preview", response_model=PreviewOut)
def preview_order(
    payload: PreviewIn,
    member_id: int = Query(...),
    svc: OrderService = Depends(get_service),
):
    """
    Prices the requested lines and shows the shipping profile.
    Nothing is written, safe to call before every confirmation screen.
    """
    try:
        return svc.preview(member_id, payload.lines)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/pay", response_model=PaymentOut, status_code=201)
def pay_order(
    payload: PayIn,
    member_id: int = Query(...),
    svc: OrderService = Depends(get_service),
):
    """
    Creates the order and reserves stock.
    A stock shortfall is not an error: the order comes back PAYMENT_FAILED.
    """
    shipping_profile = {
        "name": payload.recipient_name,
        "zip_code": payload.recipient_zip_code,
        "address": payload.recipient_address,
        "phone": payload.recipient_phone,
    }
    try:
        return svc.place_order(
            member_id=member_id,
            line_requests=payload.lines,
            card_company=payload.card_company,
            shipping_profile=shipping_profile,
            request_note=payload.request_note,
            expected_order_price=payload.expected_order_price,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PreconditionFailedError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/", response_model=OrderPageOut)
def list_orders(
    member_id: int = Query(...),
    page: int = Query(0, ge=0),
    size: int = Query(10, gt=0, le=100),
    svc: OrderService = Depends(get_service),
):
    return svc.list_orders(member_id, page, size)


@router.get("/{order_id}", response_model=OrderDetailOut)
def get_order(
    order_id: int,
    member_id: int = Query(...),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.get_order_detail(member_id, order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{order_id}/cancel", response_model=OrderStatusOut)
def cancel_order(
    order_id: int,
    member_id: int = Query(...),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.cancel_order(member_id, order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PreconditionFailedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (StockBusyError, StockConflictError) as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/{order_id}/return", response_model=OrderStatusOut)
def request_return(
    order_id: int,
    member_id: int = Query(...),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.request_return(member_id, order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PreconditionFailedError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{order_id}/ship", response_model=OrderStatusOut)
def mark_shipped(order_id: int, svc: OrderService = Depends(get_service)):
    try:
        return svc.mark_shipped(order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PreconditionFailedError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{order_id}/deliver", response_model=OrderStatusOut)
def mark_delivered(order_id: int, svc: OrderService = Depends(get_service)):
    try:
        return svc.mark_delivered(order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PreconditionFailedError as e:
        raise HTTPException(status_code=400, detail=str(e))
