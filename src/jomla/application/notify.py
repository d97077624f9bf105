"""Background handlers: push notifications for order and offer updates.

Every attempt is written to the notification log. A send failure is logged
as a failed record and re-raised so the dispatcher retries; a failure to
write that log entry is only logged.
"""

from __future__ import annotations

import logging

from jomla.domain.gateway.push_gateway import InvalidPushTokenError, PushGateway
from jomla.domain.model.events import OfferChange, OrderChange
from jomla.domain.model.notification import (
    DeliveryStatus,
    NotificationRecord,
    NotificationType,
    PushMessage,
)
from jomla.domain.model.offer import OfferStatus
from jomla.domain.model.order import OrderStatus
from jomla.domain.repository.notification_repository import NotificationRepository
from jomla.domain.repository.user_repository import UserRepository

logger = logging.getLogger(__name__)

ALL_USERS_TOPIC = "all-users"

STATUS_MESSAGES: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Your order has been received",
    OrderStatus.CONFIRMED: "Your order has been confirmed!",
    OrderStatus.PREPARING: "Your order is being prepared",
    OrderStatus.OUT_FOR_DELIVERY: "Your order is on the way!",
    OrderStatus.READY_FOR_PICKUP: "Your order is ready for pickup",
    OrderStatus.COMPLETED: "Your order has been delivered. Thanks!",
    OrderStatus.CANCELLED: "Your order has been cancelled",
}
DEFAULT_STATUS_MESSAGE = "Your order status has been updated"


def _mask(token: str) -> str:
    return f"{token[:10]}..."


class _NotificationLog:
    """Mixin writing notification records without ever raising."""

    _notifications: NotificationRepository

    def _log(self, record: NotificationRecord) -> None:
        try:
            self._notifications.add(record)
        except Exception:
            logger.exception("Failed to log %s notification", record.type.value)


class SendOrderStatusNotificationHandler(_NotificationLog):

    def __init__(
        self,
        user_repo: UserRepository,
        push: PushGateway,
        notifications: NotificationRepository,
    ) -> None:
        self._user_repo = user_repo
        self._push = push
        self._notifications = notifications

    def handle(self, change: OrderChange) -> NotificationRecord | None:
        if not change.status_changed:
            return None

        before, order = change.previous, change.current
        user_id = order.customer.user_id
        message = PushMessage(
            title=f"Order {order.order_number}",
            body=STATUS_MESSAGES.get(order.status, DEFAULT_STATUS_MESSAGE),
            data={
                "type": NotificationType.ORDER_STATUS.value,
                "orderId": change.order_id,
                "orderNumber": order.order_number,
                "status": order.status.value,
                "previousStatus": before.status.value,
            },
        )
        base = dict(
            type=NotificationType.ORDER_STATUS,
            title=message.title,
            body=message.body,
            target_type="user",
            target=user_id,
            related_id=change.order_id,
            related_name=order.order_number,
        )

        try:
            user = self._user_repo.get_by_id(user_id)
            if user is None:
                logger.error("User %s not found for order %s", user_id, change.order_id)
                return None
            if not user.fcm_tokens:
                logger.info("No push tokens for user %s", user_id)
                return None

            message_ids: list[str] = []
            failed: list[str] = []
            dead: list[str] = []
            for token in list(user.fcm_tokens):
                try:
                    message_ids.append(self._push.send_to_token(token, message))
                except InvalidPushTokenError:
                    logger.info("Removing invalid push token %s", _mask(token))
                    failed.append(token)
                    dead.append(token)
                except Exception:
                    logger.exception("Failed to send to push token %s", _mask(token))
                    failed.append(token)

            if dead:
                for token in dead:
                    user.remove_fcm_token(token)
                self._user_repo.save(user)

            logger.info(
                "Order status notification for %s: %d sent, %d failed",
                change.order_id,
                len(message_ids),
                len(failed),
            )
            record = NotificationRecord(
                **base,
                delivery_status=DeliveryStatus.SENT if message_ids else DeliveryStatus.FAILED,
                message_ids=message_ids,
                failure_count=len(failed),
                metadata={
                    "status": order.status.value,
                    "previousStatus": before.status.value,
                    "fulfillmentMethod": order.fulfillment_method.value,
                    "total": order.total.cents,
                },
            )
            self._notifications.add(record)
            return record
        except Exception as exc:
            logger.exception("Error sending order status notification for %s", change.order_id)
            self._log(
                NotificationRecord(
                    **base,
                    delivery_status=DeliveryStatus.FAILED,
                    error=str(exc),
                )
            )
            raise


class SendOfferNotificationHandler(_NotificationLog):

    def __init__(self, push: PushGateway, notifications: NotificationRepository) -> None:
        self._push = push
        self._notifications = notifications

    def handle(self, change: OfferChange) -> NotificationRecord | None:
        before, offer = change.previous, change.current
        # Updates only: a newly created offer does not broadcast.
        if before is None or offer is None:
            return None
        if before.status == OfferStatus.ACTIVE or offer.status != OfferStatus.ACTIVE:
            return None

        savings = offer.savings_percentage
        message = PushMessage(
            title="New Offer Available!",
            body=f"{offer.name} - Save {savings}%",
            data={
                "type": NotificationType.NEW_OFFER.value,
                "offerId": offer.id,
                "offerName": offer.name,
                "savings": str(savings),
            },
        )
        try:
            message_id = self._push.send_to_topic(ALL_USERS_TOPIC, message)
            logger.info("Offer notification for %s sent: %s", offer.id, message_id)
            record = NotificationRecord(
                type=NotificationType.NEW_OFFER,
                title=message.title,
                body=message.body,
                target_type="topic",
                target=ALL_USERS_TOPIC,
                delivery_status=DeliveryStatus.SENT,
                related_id=offer.id,
                related_name=offer.name,
                message_ids=[message_id],
                metadata={
                    "savingsPercentage": savings,
                    "originalTotal": offer.original_total.cents,
                    "discountedTotal": offer.discounted_total.cents,
                },
            )
            self._notifications.add(record)
            return record
        except Exception as exc:
            logger.exception("Error sending offer notification for %s", offer.id)
            self._log(
                NotificationRecord(
                    type=NotificationType.NEW_OFFER,
                    title=message.title,
                    body=f"{offer.name} - Save on your groceries",
                    target_type="topic",
                    target=ALL_USERS_TOPIC,
                    delivery_status=DeliveryStatus.FAILED,
                    related_id=offer.id,
                    related_name=offer.name,
                    error=str(exc),
                )
            )
            raise
