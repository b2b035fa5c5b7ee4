"""Tests for dashboard metrics aggregation."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from core.exceptions import AggregationError
from core.models import Booking, Customer, Payment, Project
from domain.bookings import PaymentService
from domain.metrics import MetricsService, calculate_conversion_rate

NOW = datetime(2024, 5, 15, 12, 0, 0)


class TestConversionRate:
    @pytest.mark.parametrize(
        "sold,total,expected",
        [
            (1, 3, 33.3),
            (15, 100, 15.0),
            (0, 0, 0.0),
            (0, 10, 0.0),
            (1, 16, 6.3),
            (2, 3, 66.7),
            (5, 5, 100.0),
        ],
    )
    def test_rounding(self, sold, total, expected):
        assert calculate_conversion_rate(sold, total) == expected


def _booking(session, customer, unit, user, total="1000000.00"):
    booking = Booking(
        customer_id=customer.id,
        unit_id=unit.id,
        project_id=unit.project_id,
        total_amount=Decimal(total),
        paid_amount=Decimal("0"),
        balance_amount=Decimal(total),
        assigned_to=user.id if user else None,
    )
    session.add(booking)
    session.flush()
    return booking


def _payment(session, booking, amount, paid_date, status="completed"):
    payment = Payment(
        booking_id=booking.id,
        customer_id=booking.customer_id,
        amount=Decimal(amount),
        payment_method="bank_transfer",
        status=status,
        paid_date=paid_date,
    )
    session.add(payment)
    session.flush()
    return payment


@pytest.fixture
def customer(db_session):
    customer = Customer(first_name="Priya", last_name="Sharma", phone="9811122233")
    db_session.add(customer)
    db_session.flush()
    return customer


class TestEmptyDatabase:
    def test_zero_state(self, db_session):
        metrics = MetricsService(db_session).get_dashboard_metrics(now=NOW)
        assert metrics.total_leads == 0
        assert metrics.monthly_revenue == "0.00"
        assert metrics.conversion_rate == 0.0
        assert metrics.active_projects == 0
        assert metrics.leads_by_status == []
        assert metrics.leads_by_source == []
        assert metrics.top_performers == []


class TestLeadAggregates:
    def test_counts_and_conversion(self, db_session, make_lead):
        make_lead(status="sold")
        make_lead(status="new", phone="9000000001")
        make_lead(status="new", phone="9000000002", source="referral")

        metrics = MetricsService(db_session).get_dashboard_metrics(now=NOW)

        assert metrics.total_leads == 3
        assert metrics.conversion_rate == 33.3
        assert [(r.status, r.count) for r in metrics.leads_by_status] == [("new", 2), ("sold", 1)]
        assert [(r.source, r.count) for r in metrics.leads_by_source] == [
            ("website", 2), ("referral", 1),
        ]

    def test_null_status_bucketed_as_unknown(self, db_session, make_lead):
        make_lead(status="contacted")
        lead = make_lead(phone="9000000001")
        lead.status = None
        db_session.flush()

        rows = MetricsService(db_session).get_dashboard_metrics(now=NOW).leads_by_status
        assert [(r.status, r.count) for r in rows] == [("contacted", 1), ("unknown", 1)]
        assert sum(r.count for r in rows) == 2

    def test_active_projects(self, db_session, sample_project):
        db_session.add(Project(name="Old", location="Goa", total_units=1, available_units=0, is_active=False))
        db_session.flush()
        assert MetricsService(db_session).get_dashboard_metrics(now=NOW).active_projects == 1


class TestRevenueAndPerformers:
    def test_monthly_revenue_window(self, db_session, customer, sample_unit, master_user):
        booking = _booking(db_session, customer, sample_unit, master_user)
        _payment(db_session, booking, "100000.00", datetime(2024, 5, 1, 0, 0, 0))
        _payment(db_session, booking, "50000.25", datetime(2024, 5, 31, 23, 59, 59))
        _payment(db_session, booking, "70000.00", datetime(2024, 4, 30, 23, 59, 59))
        _payment(db_session, booking, "80000.00", datetime(2024, 6, 1, 0, 0, 0))
        _payment(db_session, booking, "90000.00", datetime(2024, 5, 10), status="pending")

        metrics = MetricsService(db_session).get_dashboard_metrics(now=NOW)
        assert metrics.monthly_revenue == "150000.25"

    def test_top_performers_ranking(self, db_session, customer, sample_unit, make_user, master_user):
        seller = make_user(role="sales_executive", first_name="Kiran", last_name="Rao")
        idle = make_user(role="sales_executive", first_name="Idle", last_name="Person")

        master_booking = _booking(db_session, customer, sample_unit, master_user)
        seller_booking = _booking(db_session, customer, sample_unit, seller)
        _payment(db_session, master_booking, "100.00", datetime(2024, 5, 2))
        _payment(db_session, seller_booking, "300.00", datetime(2024, 5, 3))
        _payment(db_session, seller_booking, "200.00", datetime(2024, 5, 4))
        # last month, ignored
        _payment(db_session, master_booking, "999.00", datetime(2024, 4, 4))

        performers = MetricsService(db_session).get_dashboard_metrics(now=NOW).top_performers

        assert [p.user_id for p in performers] == [seller.id, master_user.id, idle.id]
        assert performers[0].user_name == "Kiran Rao"
        assert performers[0].sales == "500.00"
        assert performers[0].deals == 1
        assert performers[2].sales == "0.00"
        assert performers[2].deals == 0

    def test_ties_broken_by_user_id(self, db_session, make_user):
        first = make_user(role="sales_executive")
        second = make_user(role="sales_executive")
        performers = MetricsService(db_session).get_dashboard_metrics(now=NOW).top_performers
        assert [p.user_id for p in performers] == [first.id, second.id]

    def test_limit(self, db_session, make_user):
        for _ in range(4):
            make_user(role="sales_executive")
        metrics = MetricsService(db_session, top_performers_limit=2).get_dashboard_metrics(now=NOW)
        assert len(metrics.top_performers) == 2


class TestMetricsFailures:
    def test_query_failure_raises_aggregation_error(self, db_session, monkeypatch):
        def boom(self, status=None):
            raise OperationalError("SELECT count(*) FROM leads", {}, Exception("disk I/O error"))

        monkeypatch.setattr(MetricsService, "_count_leads", boom)
        with pytest.raises(AggregationError):
            MetricsService(db_session).get_dashboard_metrics(now=NOW)

    def test_route_reports_500(self, client, auth_headers, monkeypatch):
        def boom(self, status=None):
            raise OperationalError("SELECT count(*) FROM leads", {}, Exception("disk I/O error"))

        monkeypatch.setattr(MetricsService, "_count_leads", boom)
        resp = client.get("/api/dashboard/metrics", headers=auth_headers)
        assert resp.status_code == 500
        assert resp.json() == {"message": "Failed to fetch dashboard metrics"}


class TestMetricsRoute:
    def test_shape(self, client, auth_headers, make_lead, sample_project):
        make_lead(status="sold")
        resp = client.get("/api/dashboard/metrics", headers=auth_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert set(data) == {
            "total_leads",
            "monthly_revenue",
            "conversion_rate",
            "active_projects",
            "leads_by_status",
            "leads_by_source",
            "top_performers",
        }
        assert data["total_leads"] == 1
        assert data["conversion_rate"] == 100.0
        assert data["monthly_revenue"] == "0.00"
        assert data["active_projects"] == 1
        assert data["top_performers"][0]["user_name"] == "Asha Master"

    def test_requires_auth(self, client):
        resp = client.get("/api/dashboard/metrics")
        assert resp.status_code == 401


class TestMonthBoundaryOffsets:
    def test_offset_payment_counts_in_utc_month(self, db_session, customer, sample_unit, master_user):
        booking = _booking(db_session, customer, sample_unit, master_user)
        ist = timezone(timedelta(hours=5, minutes=30))
        PaymentService(db_session).create({
            "booking_id": booking.id,
            "amount": Decimal("500.00"),
            "payment_method": "upi",
            "status": "completed",
            "paid_date": datetime(2024, 6, 1, 2, 0, tzinfo=ist),
        })

        may = MetricsService(db_session).get_dashboard_metrics(now=NOW)
        june = MetricsService(db_session).get_dashboard_metrics(now=datetime(2024, 6, 15))

        assert may.monthly_revenue == "500.00"
        assert june.monthly_revenue == "0.00"
        assert may.top_performers[0].sales == "500.00"
        assert june.top_performers[0].sales == "0.00"


class TestEndToEndScenario:
    def test_project_and_single_lead(self, client, auth_headers):
        project = client.post(
            "/api/projects",
            json={"name": "Project A", "location": "Pune", "total_units": 10},
            headers=auth_headers,
        )
        assert project.status_code == 201
        lead = client.post(
            "/api/leads",
            json={
                "first_name": "Lena",
                "last_name": "One",
                "phone": "9000000010",
                "source": "website",
                "status": "new",
            },
            headers=auth_headers,
        )
        assert lead.status_code == 201

        data = client.get("/api/dashboard/metrics", headers=auth_headers).json()
        assert data["total_leads"] == 1
        assert data["leads_by_status"] == [{"status": "new", "count": 1}]
        assert data["leads_by_source"] == [{"source": "website", "count": 1}]
        assert data["conversion_rate"] == 0
        assert data["active_projects"] == 1

        client.patch(
            f"/api/projects/{project.json()['id']}", json={"is_active": False}, headers=auth_headers
        )
        data = client.get("/api/dashboard/metrics", headers=auth_headers).json()
        assert data["active_projects"] == 0
