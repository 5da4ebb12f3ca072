"""Tests for invoice generation, verification and summaries."""

import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from settlement.core.config import SettlementConfig
from settlement.core.exceptions import InvariantViolationError
from settlement.engine.invoices import (
    compute_split,
    format_invoice_number,
    generate_agent_invoice,
    generate_all_agent_invoices,
    generate_combined_invoice,
    invoice_exists,
    invoice_line_items,
    round2,
    summarize_agent_invoices,
    summarize_invoices,
    verify_invoice,
)
from settlement.engine.periods import period_by_number
from settlement.models.invoice import InvoiceStatus
from settlement.models.shared import COMBINED_AGENT_ID, SettlementKind
from settlement.schemas.inspection import InspectionStatus, InspectionType
from tests.conftest import make_inspection

PERIOD_2 = period_by_number(2)
NOW = datetime(2024, 1, 29, 9, 0, tzinfo=UTC)


@pytest.fixture
def inspections():
    return [
        make_inspection("i1", price=Decimal("100.00")),
        make_inspection("i2", price=Decimal("150.00")),
        make_inspection("i3", price=Decimal("200.00")),
    ]


class TestComputeSplit:
    def test_scenario_amounts(self):
        split = compute_split(Decimal("450.00"))
        assert split.total_amount == Decimal("450.00")
        assert split.agent_cashback == Decimal("67.50")
        assert split.clerk_commission == Decimal("135.00")
        assert split.net_amount == Decimal("247.50")

    @pytest.mark.parametrize(
        "total", ["0.01", "0.03", "0.05", "33.33", "99.99", "123.45", "1000.07", "0"]
    )
    def test_components_sum_to_total(self, total):
        split = compute_split(Decimal(total))
        assert split.agent_cashback + split.clerk_commission + split.net_amount == Decimal(total)

    def test_rounds_half_up(self):
        assert round2(Decimal("0.005")) == Decimal("0.01")
        assert round2(Decimal("1.0049")) == Decimal("1.00")
        # 0.15 * 0.10 = 0.015
        assert compute_split(Decimal("0.10")).agent_cashback == Decimal("0.02")

    def test_custom_rates(self):
        config = SettlementConfig(
            agent_cashback_rate=Decimal("0.10"), clerk_commission_rate=Decimal("0.20")
        )
        split = compute_split(Decimal("100"), config)
        assert split.agent_cashback == Decimal("10.00")
        assert split.clerk_commission == Decimal("20.00")
        assert split.net_amount == Decimal("70.00")


class TestGenerateCombinedInvoice:
    def test_combined_invoice_scenario(self, inspections):
        invoice = generate_combined_invoice(PERIOD_2, inspections, [], NOW)

        assert invoice is not None
        assert invoice.agent_id == COMBINED_AGENT_ID
        assert invoice.settlement_kind == SettlementKind.COMBINED_INVOICE
        assert invoice.period_number == 2
        assert invoice.inspection_ids == ["i1", "i2", "i3"]
        assert invoice.total_amount == Decimal("450.00")
        assert invoice.agent_cashback == Decimal("67.50")
        assert invoice.clerk_commission == Decimal("135.00")
        assert invoice.net_amount == Decimal("247.50")
        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.generated_at == NOW
        assert invoice.due_date == NOW + timedelta(days=30)
        assert invoice.billing_period_start == PERIOD_2.start
        assert invoice.billing_period_end == PERIOD_2.end
        assert invoice.invoice_number.startswith("AB-002-")

    def test_covers_every_agent(self):
        inspections = [
            make_inspection("a1", agent_id="agent-a"),
            make_inspection("b1", agent_id="agent-b"),
        ]
        invoice = generate_combined_invoice(PERIOD_2, inspections, [], NOW)
        assert invoice.inspection_ids == ["a1", "b1"]

    def test_returns_none_without_eligible_inspections(self):
        pending = [make_inspection("i1", status=InspectionStatus.IN_PROGRESS)]
        assert generate_combined_invoice(PERIOD_2, pending, [], NOW) is None

    def test_second_generation_is_a_no_op(self, inspections):
        first = generate_combined_invoice(PERIOD_2, inspections, [], NOW)
        assert generate_combined_invoice(PERIOD_2, inspections, [first], NOW) is None

    def test_agent_invoices_do_not_block_combined(self, inspections):
        agent_invoice = generate_agent_invoice(PERIOD_2, "agent-a", inspections, [], NOW)
        combined = generate_combined_invoice(PERIOD_2, inspections, [agent_invoice], NOW)
        assert combined is not None
        assert combined.inspection_ids == ["i1", "i2", "i3"]


class TestGenerateAgentInvoice:
    def test_only_the_agents_inspections(self):
        inspections = [
            make_inspection("a1", agent_id="agent-a", price=Decimal("80")),
            make_inspection("b1", agent_id="agent-b", price=Decimal("120")),
        ]
        invoice = generate_agent_invoice(PERIOD_2, "agent-b", inspections, [], NOW)
        assert invoice.agent_id == "agent-b"
        assert invoice.settlement_kind == SettlementKind.AGENT_INVOICE
        assert invoice.inspection_ids == ["b1"]
        assert invoice.total_amount == Decimal("120")

    def test_idempotent_with_prior_invoice(self, inspections):
        first = generate_agent_invoice(PERIOD_2, "agent-a", inspections, [], NOW)
        second = generate_agent_invoice(PERIOD_2, "agent-a", inspections, [first], NOW)
        assert first is not None
        assert second is None

    def test_other_period_is_independent(self, inspections):
        first = generate_agent_invoice(PERIOD_2, "agent-a", inspections, [], NOW)
        later = [make_inspection("i9", completed_date=datetime(2024, 2, 1, tzinfo=UTC))]
        invoice = generate_agent_invoice(period_by_number(3), "agent-a", later, [first], NOW)
        assert invoice.inspection_ids == ["i9"]

    def test_excludes_inspections_invoiced_under_same_kind(self, inspections):
        # A prior invoice for another period that already covered i1
        prior = SimpleNamespace(
            agent_id="agent-a",
            period_number=1,
            settlement_kind=SettlementKind.AGENT_INVOICE.value,
            inspection_ids=["i1"],
        )
        invoice = generate_agent_invoice(PERIOD_2, "agent-a", inspections, [prior], NOW)
        assert invoice.inspection_ids == ["i2", "i3"]

    def test_unknown_agent_returns_none(self, inspections):
        assert generate_agent_invoice(PERIOD_2, "agent-z", inspections, [], NOW) is None


class TestGenerateAllAgentInvoices:
    def test_one_invoice_per_agent(self):
        inspections = [
            make_inspection("a1", agent_id="agent-a", price=Decimal("100")),
            make_inspection("b1", agent_id="agent-b", price=Decimal("50")),
            make_inspection("a2", agent_id="agent-a", price=Decimal("25")),
            make_inspection("c1", agent_id="agent-c", status=InspectionStatus.CANCELLED),
        ]
        invoices = generate_all_agent_invoices(PERIOD_2, inspections, [], NOW)
        by_agent = {i.agent_id: i for i in invoices}
        assert set(by_agent) == {"agent-a", "agent-b"}
        assert by_agent["agent-a"].total_amount == Decimal("125")
        assert by_agent["agent-b"].inspection_ids == ["b1"]

    def test_skips_agents_already_invoiced(self):
        inspections = [
            make_inspection("a1", agent_id="agent-a"),
            make_inspection("b1", agent_id="agent-b"),
        ]
        existing = generate_agent_invoice(PERIOD_2, "agent-a", inspections, [], NOW)
        invoices = generate_all_agent_invoices(PERIOD_2, inspections, [existing], NOW)
        assert [i.agent_id for i in invoices] == ["agent-b"]

    def test_empty_period(self):
        assert generate_all_agent_invoices(PERIOD_2, [], [], NOW) == []


class TestInvoiceExists:
    def test_matches_scope_period_and_kind(self, inspections):
        invoice = generate_combined_invoice(PERIOD_2, inspections, [], NOW)
        assert invoice_exists(COMBINED_AGENT_ID, 2, SettlementKind.COMBINED_INVOICE, [invoice])
        assert not invoice_exists(COMBINED_AGENT_ID, 3, SettlementKind.COMBINED_INVOICE, [invoice])
        assert not invoice_exists(COMBINED_AGENT_ID, 2, SettlementKind.AGENT_INVOICE, [invoice])


class TestVerifyInvoice:
    def test_valid_invoice_passes(self, inspections):
        invoice = generate_combined_invoice(PERIOD_2, inspections, [], NOW)
        verify_invoice(invoice, inspections)

    def test_unknown_inspection(self, inspections):
        invoice = generate_combined_invoice(PERIOD_2, inspections, [], NOW)
        with pytest.raises(InvariantViolationError, match="unknown inspections: i3"):
            verify_invoice(invoice, inspections[:2])

    def test_total_mismatch(self, inspections):
        invoice = generate_combined_invoice(PERIOD_2, inspections, [], NOW)
        repriced = [inspections[0], inspections[1], make_inspection("i3", price=Decimal("1"))]
        with pytest.raises(InvariantViolationError, match="does not match"):
            verify_invoice(invoice, repriced)

    def test_split_drift(self, inspections):
        invoice = generate_combined_invoice(PERIOD_2, inspections, [], NOW)
        drifted = invoice.model_copy(update={"net_amount": Decimal("247.49")})
        with pytest.raises(InvariantViolationError, match="does not add up"):
            verify_invoice(drifted, inspections)


class TestLineItems:
    def test_one_line_per_inspection(self):
        inspections = [
            make_inspection("i1", inspection_type=InspectionType.CHECK_IN, property_id="p1"),
            make_inspection("i2", clerk_id=None, price=Decimal("75")),
        ]
        invoice = generate_combined_invoice(PERIOD_2, inspections, [], NOW)
        items = invoice_line_items(invoice, inspections)
        assert [item.inspection_id for item in items] == ["i1", "i2"]
        assert items[0].inspection_type == InspectionType.CHECK_IN
        assert items[0].property_id == "p1"
        assert items[1].clerk_id is None
        assert items[1].amount == Decimal("75")

    def test_missing_inspection_raises(self, inspections):
        invoice = generate_combined_invoice(PERIOD_2, inspections, [], NOW)
        with pytest.raises(InvariantViolationError):
            invoice_line_items(invoice, [])


def test_format_invoice_number():
    invoice_id = uuid.UUID("1f3a9c00-0000-4000-8000-000000000000")
    assert format_invoice_number(7, invoice_id) == "AB-007-1F3A9C00000040008000000000000000"


def test_invoice_numbers_differ_when_ids_share_a_prefix():
    first = uuid.UUID("1f3a9c00-0000-4000-8000-000000000001")
    second = uuid.UUID("1f3a9c00-0000-4000-8000-000000000002")
    assert format_invoice_number(2, first) != format_invoice_number(2, second)


def _stored(agent_id, total, status, due_date, paid_at=None):
    return SimpleNamespace(
        agent_id=agent_id,
        total_amount=Decimal(total),
        status=status,
        due_date=due_date,
        paid_at=paid_at,
    )


class TestSummaries:
    def test_summarize_by_effective_status(self):
        past = NOW - timedelta(days=1)
        future = NOW + timedelta(days=10)
        invoices = [
            _stored("a", "100", "draft", future),
            _stored("a", "200", "generated", future),
            _stored("b", "300", "sent", past),
            _stored("b", "400", "paid", past, paid_at=past),
        ]
        summary = summarize_invoices(invoices, NOW)
        assert summary.total_invoices == 4
        assert summary.total_amount == Decimal("1000")
        assert summary.total_paid == Decimal("400")
        assert summary.total_outstanding == Decimal("500")
        assert summary.total_overdue == Decimal("300")
        assert summary.average_invoice_amount == Decimal("250.00")

    def test_empty_summary(self):
        summary = summarize_invoices([], NOW)
        assert summary.total_invoices == 0
        assert summary.average_invoice_amount == Decimal(0)

    def test_agent_summary(self):
        future = NOW + timedelta(days=10)
        invoices = [_stored("a", "100", "sent", future), _stored("b", "50", "sent", future)]
        summary = summarize_agent_invoices("b", invoices, NOW)
        assert summary.total_invoices == 1
        assert summary.total_outstanding == Decimal("50")
