"""Tests for projects, towers, units and the unit status table."""
from __future__ import annotations

from decimal import Decimal

import pytest

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.models import Customer
from domain.bookings import BookingService
from domain.projects import ProjectService, can_transition_unit


class TestTransitionTable:
    @pytest.mark.parametrize(
        "current,target",
        [
            ("available", "reserved"),
            ("available", "blocked"),
            ("reserved", "sold"),
            ("reserved", "available"),
            ("reserved", "blocked"),
            ("blocked", "available"),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition_unit(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("available", "sold"),
            ("sold", "available"),
            ("sold", "reserved"),
            ("blocked", "sold"),
            ("blocked", "reserved"),
            ("available", "demolished"),
        ],
    )
    def test_rejected(self, current, target):
        assert not can_transition_unit(current, target)


class TestUnitStatusCounters:
    def test_reserve_then_sell(self, db_session, sample_unit):
        service = ProjectService(db_session)
        project = sample_unit.project

        service.update_unit_status(sample_unit.id, "reserved")
        assert project.available_units == 3
        assert project.sold_units == 0

        service.update_unit_status(sample_unit.id, "sold")
        assert sample_unit.status == "sold"
        assert project.available_units == 3
        assert project.sold_units == 1

    def test_release_restores_availability(self, db_session, sample_unit):
        service = ProjectService(db_session)
        service.update_unit_status(sample_unit.id, "blocked")
        service.update_unit_status(sample_unit.id, "available")
        assert sample_unit.project.available_units == 4

    def test_same_status_is_noop(self, db_session, sample_unit):
        ProjectService(db_session).update_unit_status(sample_unit.id, "available")
        assert sample_unit.project.available_units == 4

    def test_illegal_transition_conflicts(self, db_session, sample_unit):
        with pytest.raises(ConflictError):
            ProjectService(db_session).update_unit_status(sample_unit.id, "sold")
        assert sample_unit.status == "available"
        assert sample_unit.project.available_units == 4

    def test_unknown_unit(self, db_session):
        with pytest.raises(NotFoundError):
            ProjectService(db_session).update_unit_status(999999, "reserved")


class TestInventoryService:
    def test_tower_total_defaults_to_grid(self, db_session, sample_project):
        tower = ProjectService(db_session).create_tower(
            sample_project.id, {"name": "Tower B", "total_floors": 10, "units_per_floor": 4}
        )
        assert tower.total_units == 40

    def test_unit_project_defaults_to_tower(self, db_session, sample_tower):
        unit = ProjectService(db_session).create_unit({
            "tower_id": sample_tower.id,
            "unit_number": "A-201",
            "floor": 2,
            "type": "3BHK",
            "area": "1450.00",
            "price": "7200000.00",
        })
        assert unit.project_id == sample_tower.project_id
        assert unit.status == "available"

    def test_unit_project_mismatch(self, db_session, sample_tower):
        other = ProjectService(db_session).create({
            "name": "Other", "location": "Nashik", "total_units": 1, "available_units": 1,
        })
        with pytest.raises(ValidationError):
            ProjectService(db_session).create_unit({
                "tower_id": sample_tower.id,
                "project_id": other.id,
                "unit_number": "X-1",
                "floor": 1,
                "type": "1BHK",
                "area": "500",
                "price": "100",
            })

    def test_list_units_filters(self, db_session, sample_unit):
        service = ProjectService(db_session)
        assert [u.id for u in service.list_units(status="available")] == [sample_unit.id]
        assert service.list_units(status="sold") == []
        assert [u.id for u in service.list_units(project_id=sample_unit.project_id)] == [sample_unit.id]


class TestInventoryRoutes:
    def test_project_create_defaults_available(self, client, auth_headers):
        resp = client.post(
            "/api/projects",
            json={"name": "Green Meadows", "location": "Mumbai", "total_units": 120},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["available_units"] == 120
        assert data["sold_units"] == 0
        assert data["is_active"] is True

    def test_unit_status_route(self, client, auth_headers, sample_unit):
        ok = client.patch(
            f"/api/units/{sample_unit.id}/status", json={"status": "reserved"}, headers=auth_headers
        )
        assert ok.status_code == 200
        assert ok.json()["status"] == "reserved"

        project = client.get(f"/api/projects/{sample_unit.project_id}", headers=auth_headers).json()
        assert project["available_units"] == 3

    def test_unit_status_conflict(self, client, auth_headers, sample_unit):
        resp = client.patch(
            f"/api/units/{sample_unit.id}/status", json={"status": "sold"}, headers=auth_headers
        )
        assert resp.status_code == 409
        assert resp.json() == {"message": "Unit cannot move from available to sold"}

    def test_units_filter_by_status(self, client, auth_headers, sample_unit):
        resp = client.get("/api/units", params={"status": "available"}, headers=auth_headers)
        assert [u["id"] for u in resp.json()] == [sample_unit.id]
        assert resp.json()[0]["price"] == "5000000.00"

    def test_project_towers_and_units(self, client, auth_headers, sample_unit):
        project_id = sample_unit.project_id
        towers = client.get(f"/api/projects/{project_id}/towers", headers=auth_headers)
        assert len(towers.json()) == 1
        units = client.get(f"/api/projects/{project_id}/units", headers=auth_headers)
        assert [u["unit_number"] for u in units.json()] == ["A-101"]

    def test_missing_project(self, client, auth_headers):
        resp = client.get("/api/projects/999999/towers", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json() == {"message": "Project not found"}


class TestUnitsHeldByBookings:
    @pytest.fixture
    def booked_unit(self, db_session, sample_unit):
        customer = Customer(first_name="Priya", last_name="Sharma", phone="9811122233")
        db_session.add(customer)
        db_session.flush()
        BookingService(db_session).create({
            "customer_id": customer.id,
            "unit_id": sample_unit.id,
            "total_amount": Decimal("5000000.00"),
        })
        return sample_unit

    @pytest.mark.parametrize("target", ["available", "sold", "blocked"])
    def test_manual_move_rejected(self, db_session, booked_unit, target):
        with pytest.raises(ConflictError):
            ProjectService(db_session).update_unit_status(booked_unit.id, target)
        assert booked_unit.status == "reserved"
        assert booked_unit.project.available_units == 3

    def test_same_status_still_noop(self, db_session, booked_unit):
        unit = ProjectService(db_session).update_unit_status(booked_unit.id, "reserved")
        assert unit.status == "reserved"

    def test_route_conflict(self, client, auth_headers, booked_unit):
        resp = client.patch(
            f"/api/units/{booked_unit.id}/status", json={"status": "available"}, headers=auth_headers
        )
        assert resp.status_code == 409
        assert "active booking" in resp.json()["message"]

    def test_released_after_cancel(self, db_session, booked_unit):
        booking = BookingService(db_session).list_all()[0]
        BookingService(db_session).update(booking.id, {"status": "cancelled"})
        ProjectService(db_session).update_unit_status(booked_unit.id, "blocked")
        assert booked_unit.status == "blocked"
