"""Tests for pipeline bucketing."""
from __future__ import annotations

from types import SimpleNamespace

from domain.pipeline import PIPELINE_STAGES, build_pipeline, group_leads_by_status, normalize_status

CANONICAL = ["new", "contacted", "site_visit", "negotiation", "booking", "sold", "lost"]


def _lead(lead_id, status):
    return SimpleNamespace(id=lead_id, status=status)


class TestGroupLeadsByStatus:
    def test_all_keys_present_in_order(self):
        grouped = group_leads_by_status([])
        assert list(grouped) == CANONICAL
        assert all(bucket == [] for bucket in grouped.values())

    def test_partition_and_input_order(self):
        leads = [_lead(1, "new"), _lead(2, "sold"), _lead(3, "new"), _lead(4, "lost")]
        grouped = group_leads_by_status(leads)
        assert [l.id for l in grouped["new"]] == [1, 3]
        assert [l.id for l in grouped["sold"]] == [2]
        assert [l.id for l in grouped["lost"]] == [4]
        assert sum(len(bucket) for bucket in grouped.values()) == len(leads)

    def test_sale_alias_maps_to_sold(self):
        grouped = group_leads_by_status([_lead(1, "sale")])
        assert [l.id for l in grouped["sold"]] == [1]

    def test_missing_and_unknown_status_fall_back_to_new(self):
        grouped = group_leads_by_status([_lead(1, None), _lead(2, "archived"), _lead(3, "")])
        assert [l.id for l in grouped["new"]] == [1, 2, 3]

    def test_accepts_mappings(self):
        grouped = group_leads_by_status([{"id": 1, "status": "booking"}])
        assert grouped["booking"] == [{"id": 1, "status": "booking"}]

    def test_idempotent(self):
        leads = [_lead(1, "contacted"), _lead(2, "sale"), _lead(3, None), _lead(4, "contacted")]
        first = group_leads_by_status(leads)
        second = group_leads_by_status(leads)
        assert first == second
        # Regrouping any bucket yields the same bucket
        for status, bucket in first.items():
            assert group_leads_by_status(bucket)[normalize_status(status)] == bucket

    def test_input_not_mutated(self):
        leads = [_lead(1, "sale")]
        group_leads_by_status(leads)
        assert leads[0].status == "sale"


class TestBuildPipeline:
    def test_titles_and_counts(self):
        leads = [_lead(i, "contacted") for i in range(5)]
        stages = build_pipeline(leads, preview=2)
        assert [s["status"] for s in stages] == CANONICAL
        assert [s["title"] for s in stages] == [stage["title"] for stage in PIPELINE_STAGES]
        contacted = stages[1]
        assert contacted["count"] == 5
        assert len(contacted["leads"]) == 2
