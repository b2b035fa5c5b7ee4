"""
Booking and payment services.

A booking's ``paid_amount`` is the sum of its completed payments and
``balance_amount`` is ``total_amount - paid_amount``. Both are recomputed
whenever one of its payments is created or updated, and the balance is
recomputed when the booking total changes.

Booking status follows its own table and drags the unit with it:

    active    -> completed (unit sold) | cancelled (unit released)
    completed -> (terminal)
    cancelled -> (terminal)
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, FrozenSet, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.logging_config import get_logger
from core.models import (
    Booking,
    BookingStatus,
    Customer,
    Payment,
    PaymentStatus,
    Unit,
    UnitStatus,
    User,
)
from core.utils import to_money, to_utc, utcnow
from domain.base import apply_changes, check_reference, get_or_raise
from domain.projects import ProjectService

LOGGER = get_logger(__name__)

BOOKING_STATUS_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.ACTIVE: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

# Unit status a booking's unit moves to when the booking reaches each status.
UNIT_STATUS_FOR_BOOKING: Dict[BookingStatus, UnitStatus] = {
    BookingStatus.COMPLETED: UnitStatus.SOLD,
    BookingStatus.CANCELLED: UnitStatus.AVAILABLE,
}


def can_transition_booking(current: str, target: str) -> bool:
    """Whether a booking may move from ``current`` to ``target``."""
    try:
        return BookingStatus(target) in BOOKING_STATUS_TRANSITIONS[BookingStatus(current)]
    except ValueError:
        return False


def _normalize_dates(payload: Dict[str, Any]) -> None:
    for key in ("paid_date", "due_date"):
        if payload.get(key) is not None:
            payload[key] = to_utc(payload[key])


class BookingService:
    """Service for unit bookings."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.projects = ProjectService(session)

    def _ordered(self):
        return self.session.query(Booking).order_by(Booking.created_at.desc(), Booking.id.desc())

    def _active_booking_for_unit(self, unit_id: int) -> Optional[Booking]:
        return (
            self.session.query(Booking)
            .filter(Booking.unit_id == unit_id, Booking.status == BookingStatus.ACTIVE.value)
            .first()
        )

    def create(self, data: Dict[str, Any]) -> Booking:
        """
        Book a unit for a customer.

        The unit is reserved as part of the booking. ``project_id`` defaults
        to the unit's project.

        Raises:
            NotFoundError: Unknown customer, unit or assignee.
            ValidationError: ``project_id`` does not match the unit.
            ConflictError: The unit is sold, blocked or already booked.
        """
        payload = dict(data)
        get_or_raise(self.session, Customer, payload["customer_id"], "Customer")
        unit = get_or_raise(self.session, Unit, payload["unit_id"], "Unit")
        check_reference(self.session, User, payload.get("assigned_to"), "Assigned user")

        project_id = payload.get("project_id") or unit.project_id
        if project_id != unit.project_id:
            raise ValidationError.for_field("project_id", "Unit does not belong to this project")
        payload["project_id"] = project_id

        if self._active_booking_for_unit(unit.id) is not None:
            raise ConflictError("Unit already has an active booking")
        if unit.status == UnitStatus.AVAILABLE.value:
            self.projects.transition_unit(unit, UnitStatus.RESERVED.value)
        if unit.status != UnitStatus.RESERVED.value:
            raise ConflictError(f"Unit is not available for booking (status: {unit.status})")

        total = to_money(payload["total_amount"])
        payload["total_amount"] = total
        payload["paid_amount"] = Decimal("0.00")
        payload["balance_amount"] = total
        if payload.get("booking_date") is None:
            payload.pop("booking_date", None)

        booking = Booking(**payload)
        self.session.add(booking)
        self.session.flush()
        self.session.refresh(booking)

        LOGGER.info(
            "Booking created",
            extra={"extra_data": {"booking_id": booking.id, "unit_id": unit.id, "total": str(total)}},
        )
        return booking

    def get(self, booking_id: int) -> Optional[Booking]:
        return self.session.get(Booking, booking_id)

    def list_all(self) -> List[Booking]:
        return self._ordered().all()

    def list_by_customer(self, customer_id: int) -> List[Booking]:
        return self._ordered().filter(Booking.customer_id == customer_id).all()

    def update(self, booking_id: int, changes: Dict[str, Any]) -> Optional[Booking]:
        """
        Partial update.

        Only an active booking can change status. Cancelling releases its
        unit and completing marks it sold.

        Raises:
            ConflictError: The status move is not allowed, or the unit is
                not reserved for this booking.
        """
        booking = self.get(booking_id)
        if booking is None:
            return None

        check_reference(self.session, User, changes.get("assigned_to"), "Assigned user")
        old_status = booking.status
        new_status = changes.get("status") or old_status

        unit = None
        if new_status != old_status:
            if not can_transition_booking(old_status, new_status):
                raise ConflictError(f"Booking cannot move from {old_status} to {new_status}")
            unit = get_or_raise(self.session, Unit, booking.unit_id, "Unit")
            if unit.status != UnitStatus.RESERVED.value:
                raise ConflictError(
                    f"Unit {unit.unit_number} is {unit.status}, not reserved for this booking"
                )

        apply_changes(booking, changes)

        if "total_amount" in changes:
            booking.total_amount = to_money(booking.total_amount)
            booking.balance_amount = booking.total_amount - to_money(booking.paid_amount)

        if unit is not None:
            self.projects.transition_unit(unit, UNIT_STATUS_FOR_BOOKING[BookingStatus(new_status)].value)
            LOGGER.info(
                f"Booking {booking_id} status: {old_status} -> {new_status}",
                extra={"extra_data": {"booking_id": booking_id, "unit_id": unit.id}},
            )

        self.session.flush()
        return booking

    def recalculate_amounts(self, booking: Booking) -> Booking:
        """Recompute paid and balance amounts from completed payments."""
        self.session.flush()
        paid = (
            self.session.query(func.coalesce(func.sum(Payment.amount), 0))
            .filter(
                Payment.booking_id == booking.id,
                Payment.status == PaymentStatus.COMPLETED.value,
            )
            .scalar()
        )
        booking.paid_amount = to_money(paid)
        booking.balance_amount = to_money(booking.total_amount) - booking.paid_amount
        self.session.flush()
        return booking


class PaymentService:
    """Service for booking payments."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.bookings = BookingService(session)

    def _ordered(self):
        return self.session.query(Payment).order_by(Payment.created_at.desc(), Payment.id.desc())

    def create(self, data: Dict[str, Any]) -> Payment:
        """
        Record a payment against a booking.

        ``customer_id`` defaults to the booking's customer. A completed
        payment without a ``paid_date`` is stamped with the current time.
        """
        payload = dict(data)
        booking = get_or_raise(self.session, Booking, payload["booking_id"], "Booking")

        customer_id = payload.get("customer_id") or booking.customer_id
        if customer_id != booking.customer_id:
            get_or_raise(self.session, Customer, customer_id, "Customer")
            raise ValidationError.for_field("customer_id", "Customer does not match the booking")
        payload["customer_id"] = customer_id
        _normalize_dates(payload)

        if payload.get("status") is None:
            payload["status"] = PaymentStatus.PENDING.value
        if payload["status"] == PaymentStatus.COMPLETED.value and payload.get("paid_date") is None:
            payload["paid_date"] = utcnow()

        payment = Payment(**payload)
        self.session.add(payment)
        self.bookings.recalculate_amounts(booking)
        self.session.refresh(payment)

        LOGGER.info(
            "Payment recorded",
            extra={"extra_data": {
                "payment_id": payment.id,
                "booking_id": booking.id,
                "amount": str(payment.amount),
                "status": payment.status,
            }},
        )
        return payment

    def get(self, payment_id: int) -> Optional[Payment]:
        return self.session.get(Payment, payment_id)

    def list_all(self) -> List[Payment]:
        return self._ordered().all()

    def list_by_booking(self, booking_id: int) -> List[Payment]:
        return self._ordered().filter(Payment.booking_id == booking_id).all()

    def list_by_customer(self, customer_id: int) -> List[Payment]:
        return self._ordered().filter(Payment.customer_id == customer_id).all()

    def update(self, payment_id: int, changes: Dict[str, Any]) -> Optional[Payment]:
        payment = self.get(payment_id)
        if payment is None:
            return None

        payload = dict(changes)
        _normalize_dates(payload)
        apply_changes(payment, payload)
        if payment.status == PaymentStatus.COMPLETED.value and payment.paid_date is None:
            payment.paid_date = utcnow()

        booking = self.session.get(Booking, payment.booking_id)
        if booking is None:
            raise NotFoundError("Booking", payment.booking_id)
        self.bookings.recalculate_amounts(booking)
        return payment
