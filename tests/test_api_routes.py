"""Tests for error mapping, health checks and the smaller resource routes."""
from __future__ import annotations

from datetime import datetime

from api.app import format_validation_errors
from conftest import headers_for


class TestValidationErrorFormat:
    def test_strips_location_prefix(self):
        errors = format_validation_errors([
            {"loc": ("body", "phone"), "msg": "Field required", "type": "missing"},
            {"loc": ("query", "limit"), "msg": "bad", "type": "int_parsing"},
            {"loc": ("body", "items", 0, "name"), "msg": "too short", "type": "string_too_short"},
        ])
        assert errors == [
            {"field": "phone", "message": "Field required", "type": "missing"},
            {"field": "limit", "message": "bad", "type": "int_parsing"},
            {"field": "items.0.name", "message": "too short", "type": "string_too_short"},
        ]

    def test_whole_body_error(self):
        errors = format_validation_errors([{"loc": ("body",), "msg": "Field required", "type": "missing"}])
        assert errors[0]["field"] == "body"


class TestHealth:
    def test_liveness(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "service": "realty-crm"}

    def test_detailed(self, client):
        resp = client.get("/api/health/detailed")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["checks"]["database"]["connected"] is True
        assert data["checks"]["database"]["tables_missing"] == []


class TestErrorMapping:
    def test_unknown_route(self, client):
        resp = client.get("/api/nope")
        assert resp.status_code == 404
        assert "message" in resp.json()

    def test_unknown_reference_is_404(self, client, auth_headers):
        resp = client.post(
            "/api/communications",
            json={"lead_id": 999999, "user_id": 1, "type": "call"},
            headers=auth_headers,
        )
        assert resp.status_code == 404
        assert resp.json() == {"message": "Lead not found"}

    def test_bad_path_param_is_400(self, client, auth_headers):
        resp = client.get("/api/customers/not-a-number", headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "customer_id"

    def test_domain_validation_is_400(self, client, auth_headers, sample_tower):
        resp = client.post(
            "/api/units",
            json={
                "tower_id": sample_tower.id,
                "project_id": sample_tower.project_id + 100,
                "unit_number": "B-1",
                "floor": 1,
                "type": "1BHK",
                "area": "600.00",
                "price": "2500000.00",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "project_id"

    def test_read_only_role_cannot_write(self, client, make_user):
        reader = make_user(role="sales_executive")
        resp = client.post(
            "/api/projects",
            json={"name": "Nope", "location": "Nowhere", "total_units": 1},
            headers=headers_for(reader),
        )
        assert resp.status_code == 403


class TestCommunications:
    def test_completed_call_stamps_lead(self, client, auth_headers, make_lead, master_user):
        lead = make_lead()
        resp = client.post(
            "/api/communications",
            json={
                "lead_id": lead.id,
                "user_id": master_user.id,
                "type": "call",
                "duration": 12,
                "completed_at": "2024-05-10T09:30:00",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["status"] == "completed"
        assert lead.last_contacted_at == datetime(2024, 5, 10, 9, 30)

    def test_scheduled_meeting_leaves_lead(self, client, auth_headers, make_lead, master_user):
        lead = make_lead()
        resp = client.post(
            "/api/communications",
            json={
                "lead_id": lead.id,
                "user_id": master_user.id,
                "type": "meeting",
                "status": "scheduled",
                "scheduled_at": "2024-06-01T10:00:00",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["completed_at"] is None
        assert lead.last_contacted_at is None

    def test_lead_timeline_and_recent(self, client, auth_headers, make_lead, master_user):
        lead = make_lead()
        for kind in ("call", "email", "sms"):
            client.post(
                "/api/communications",
                json={"lead_id": lead.id, "user_id": master_user.id, "type": kind},
                headers=auth_headers,
            )

        timeline = client.get(f"/api/leads/{lead.id}/communications", headers=auth_headers)
        assert [c["type"] for c in timeline.json()] == ["sms", "email", "call"]

        recent = client.get("/api/communications/recent", params={"limit": 2}, headers=auth_headers)
        assert len(recent.json()) == 2


class TestCustomers:
    def test_crud(self, client, auth_headers):
        created = client.post(
            "/api/customers",
            json={"first_name": "Neha", "last_name": "Joshi", "phone": "9822012345"},
            headers=auth_headers,
        )
        assert created.status_code == 201
        customer_id = created.json()["id"]

        patched = client.patch(
            f"/api/customers/{customer_id}", json={"address": "Baner, Pune"}, headers=auth_headers
        )
        assert patched.json()["address"] == "Baner, Pune"
        assert patched.json()["first_name"] == "Neha"

        listed = client.get("/api/customers", headers=auth_headers)
        assert [c["id"] for c in listed.json()] == [customer_id]

    def test_missing_customer(self, client, auth_headers):
        resp = client.patch("/api/customers/999999", json={"address": "x"}, headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json() == {"message": "Customer not found"}


class TestChannelPartners:
    def test_totals_are_edited_directly(self, client, auth_headers):
        created = client.post(
            "/api/channel-partners",
            json={
                "name": "Sunil Broker",
                "company_name": "Prime Estates",
                "email": "sunil@prime.example.com",
                "phone": "9898989898",
                "commission_rate": "2.50",
            },
            headers=auth_headers,
        )
        assert created.status_code == 201
        partner = created.json()
        assert partner["total_leads"] == 0
        assert partner["total_sales"] == "0.00"

        patched = client.patch(
            f"/api/channel-partners/{partner['id']}",
            json={"total_leads": 7, "total_sales": "12500000.00"},
            headers=auth_headers,
        )
        assert patched.status_code == 200
        data = patched.json()
        assert data["total_leads"] == 7
        assert data["total_sales"] == "12500000.00"
        assert data["commission_rate"] == "2.50"

    def test_commission_rate_bounds(self, client, auth_headers):
        resp = client.post(
            "/api/channel-partners",
            json={"name": "X", "email": "x@example.com", "phone": "1", "commission_rate": "150"},
            headers=auth_headers,
        )
        assert resp.status_code == 400
