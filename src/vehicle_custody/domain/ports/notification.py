"""Outbound notification transport."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from vehicle_custody.domain.model import AlertKind


@dataclass(frozen=True, slots=True)
class Notification:
    kind: AlertKind
    recipient: str
    subject: str
    body: str


@dataclass(frozen=True, slots=True)
class DeliveryResult:
    delivered: bool
    error: str | None = None


@runtime_checkable
class Notifier(Protocol):
    """Deliver a rendered notification.

    Implementations report transport failures through ``DeliveryResult``;
    raising is tolerated and treated the same way by the scheduler.
    """

    def send(self, notification: Notification) -> DeliveryResult: ...
