# productshop/services/notification_service.py
from productshop.celery_worker import celery_app
from productshop.utils.logging import get_logger

logger = get_logger(__name__)

_MESSAGES = {
    "PAYMENT_COMPLETED": "payment completed, preparing shipment",
    "ORDER_CANCELLED": "order cancelled, stock released",
    "RETURN_REQUESTED": "return request received",
}


class NotificationService:
    """
    Sends order status notifications to members.
    Uses Celery so the request never waits on delivery.
    """

    @staticmethod
    def send_order_notification(member_id: int, order_id: int, status: str):
        send_order_notification_task.delay(member_id, order_id, status)


@celery_app.task(name="productshop.services.notification_service.send_order_notification_task")
def send_order_notification_task(member_id: int, order_id: int, status: str):
    """
    Celery task, a real deployment would hand this to an email/SMS/push provider.
    For now it only logs.
    """
    message = _MESSAGES.get(status, status.lower())
    logger.info(f"[NOTIFICATION] Member {member_id}: Order {order_id} {message}")

    return {"member_id": member_id, "order_id": order_id, "status": status, "delivery": "sent"}
