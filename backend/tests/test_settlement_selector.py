"""Tests for settlement eligibility selection."""

from datetime import UTC, datetime
from decimal import Decimal
from types import SimpleNamespace

from settlement.engine.periods import period_by_number
from settlement.engine.selector import (
    group_by_agent,
    group_by_clerk,
    select_eligible,
    settled_ids,
    settlement_date,
)
from settlement.models.shared import SettlementKind
from settlement.schemas.inspection import InspectionStatus
from tests.conftest import make_inspection

PERIOD_2 = period_by_number(2)  # 2024-01-15 .. 2024-01-28


class TestSettlementDate:
    def test_prefers_completed_date(self):
        inspection = make_inspection(
            "i1",
            completed_date=datetime(2024, 1, 20, tzinfo=UTC),
            completed_at=datetime(2024, 1, 21, tzinfo=UTC),
        )
        assert settlement_date(inspection) == datetime(2024, 1, 20, tzinfo=UTC)

    def test_falls_back_to_completed_at(self):
        inspection = make_inspection(
            "i1", completed_date=None, completed_at=datetime(2024, 1, 21, tzinfo=UTC)
        )
        assert settlement_date(inspection) == datetime(2024, 1, 21, tzinfo=UTC)

    def test_falls_back_to_scheduled_date(self):
        inspection = make_inspection(
            "i1", completed_date=None, scheduled_date=datetime(2024, 1, 3, tzinfo=UTC)
        )
        assert settlement_date(inspection) == datetime(2024, 1, 3, tzinfo=UTC)


class TestSelectEligible:
    def test_filters_to_completed_in_period(self):
        inspections = [
            make_inspection("in-period"),
            make_inspection("scheduled", status=InspectionStatus.SCHEDULED),
            make_inspection("cancelled", status=InspectionStatus.CANCELLED),
            make_inspection("earlier", completed_date=datetime(2024, 1, 10, tzinfo=UTC)),
            make_inspection("later", completed_date=datetime(2024, 1, 29, tzinfo=UTC)),
        ]
        result = select_eligible(inspections, PERIOD_2)
        assert [i.id for i in result] == ["in-period"]

    def test_includes_period_boundaries(self):
        inspections = [
            make_inspection("start", completed_date=PERIOD_2.start),
            make_inspection("end", completed_date=PERIOD_2.end),
        ]
        assert [i.id for i in select_eligible(inspections, PERIOD_2)] == ["start", "end"]

    def test_agent_filter(self):
        inspections = [
            make_inspection("a1", agent_id="agent-a"),
            make_inspection("b1", agent_id="agent-b"),
        ]
        result = select_eligible(inspections, PERIOD_2, agent_id="agent-b")
        assert [i.id for i in result] == ["b1"]

    def test_excludes_already_settled(self):
        inspections = [make_inspection("i1"), make_inspection("i2")]
        result = select_eligible(inspections, PERIOD_2, already_settled={"i1"})
        assert [i.id for i in result] == ["i2"]

    def test_sorted_by_settlement_date_then_id(self):
        inspections = [
            make_inspection("c", completed_date=datetime(2024, 1, 25, tzinfo=UTC)),
            make_inspection("b", completed_date=datetime(2024, 1, 16, tzinfo=UTC)),
            make_inspection("a", completed_date=datetime(2024, 1, 16, tzinfo=UTC)),
        ]
        result = select_eligible(inspections, PERIOD_2)
        assert [i.id for i in result] == ["a", "b", "c"]

    def test_deterministic_for_any_input_order(self):
        inspections = [
            make_inspection(f"i{n}", completed_date=datetime(2024, 1, 15 + n % 5, tzinfo=UTC))
            for n in range(10)
        ]
        first = select_eligible(inspections, PERIOD_2)
        second = select_eligible(list(reversed(inspections)), PERIOD_2)
        assert [i.id for i in first] == [i.id for i in second]

    def test_empty_result_is_a_list(self):
        assert select_eligible([], PERIOD_2) == []


class TestSettledIds:
    def test_collects_ids_for_kind(self):
        records = [
            SimpleNamespace(settlement_kind="agent_invoice", inspection_ids=["i1", "i2"]),
            SimpleNamespace(settlement_kind="combined_invoice", inspection_ids=["i3"]),
        ]
        assert settled_ids(records, SettlementKind.AGENT_INVOICE) == {"i1", "i2"}
        assert settled_ids(records, SettlementKind.COMBINED_INVOICE) == {"i3"}

    def test_records_without_kind_always_count(self):
        entries = [SimpleNamespace(inspection_ids=["i1"])]
        assert settled_ids(entries, SettlementKind.CASHBACK) == {"i1"}

    def test_cashback_kind_ignores_invoices(self):
        records = [SimpleNamespace(settlement_kind="agent_invoice", inspection_ids=["i1"])]
        assert settled_ids(records, SettlementKind.CASHBACK) == set()


class TestGrouping:
    def test_group_by_agent_keeps_first_seen_order(self):
        inspections = [
            make_inspection("1", agent_id="b"),
            make_inspection("2", agent_id="a"),
            make_inspection("3", agent_id="b"),
        ]
        groups = group_by_agent(inspections)
        assert list(groups) == ["b", "a"]
        assert [i.id for i in groups["b"]] == ["1", "3"]

    def test_group_by_clerk_skips_unassigned(self):
        inspections = [
            make_inspection("1", clerk_id="clerk-1", price=Decimal("10")),
            make_inspection("2", clerk_id=None),
        ]
        assert list(group_by_clerk(inspections)) == ["clerk-1"]
