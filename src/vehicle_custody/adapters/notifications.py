"""Notification transports available without external services."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from vehicle_custody.domain.ports import DeliveryResult

if TYPE_CHECKING:
    from vehicle_custody.domain.ports import Notification

log = logging.getLogger(__name__)


@dataclass(slots=True)
class LoggingNotifier:
    """Write notifications to the log instead of delivering them."""

    level: int = logging.WARNING

    def send(self, notification: Notification) -> DeliveryResult:
        log.log(
            self.level,
            "[%s] to=%s subject=%s\n%s",
            notification.kind.value,
            notification.recipient,
            notification.subject,
            notification.body,
        )
        return DeliveryResult(delivered=True)


@dataclass(slots=True)
class UnavailableNotifier:
    """Report every notification as undeliverable so it lands in the pending queue."""

    reason: str = "no notification transport configured"
    attempts: list[Notification] = field(default_factory=list["Notification"])

    def send(self, notification: Notification) -> DeliveryResult:
        self.attempts.append(notification)
        return DeliveryResult(delivered=False, error=self.reason)
