import pytest

from conftest import NOW, make_gauge
from inspectflow.core.errors import PacketValidationError
from inspectflow.schemas.common import Role
from inspectflow.schemas.packets import DimensionRow, InspectionReport, PacketMeta
from inspectflow.services.gauges import record_use
from inspectflow.services.packets import (
    CHECKLIST,
    PLACEHOLDER,
    SOP_LINKS,
    add_row,
    header_summary,
    new_report,
    open_packet,
    remove_last_row,
)


class TestOpenPacket:
    def test_fixed_template(self):
        packet = open_packet("441")
        assert packet.order_id == "441"
        assert packet.sop_links == ["SOP-THREAD-GENERAL.pdf", "SOP-NDT-MT-LEVEL2.pdf"]
        assert packet.checklist == list(CHECKLIST)
        assert len(packet.checklist) == 4

    def test_reopening_is_idempotent(self):
        first = open_packet("441")
        second = open_packet("441")
        assert first.sop_links == second.sop_links == list(SOP_LINKS)
        assert first.checklist == second.checklist
        assert len(set(second.sop_links)) == len(second.sop_links)

    def test_reopening_with_saved_state_does_not_duplicate(self):
        packet = open_packet("441")
        again = open_packet("441", packet.meta, packet.report, packet.gauge_uses)
        assert again.sop_links == packet.sop_links
        assert again.checklist == packet.checklist

    def test_fresh_report_has_default_rows(self):
        rows = open_packet("441").report.dimensions
        assert [r.serial for r in rows] == [str(i) for i in range(1, 13)]
        assert all(r.l1 == "" and r.result == "" for r in rows)

    def test_row_count_is_configurable(self):
        assert len(open_packet("441", row_count=3).report.dimensions) == 3

    def test_missing_meta_leaves_header_blank(self):
        packet = open_packet("999")
        assert packet.meta.order_id == "999"
        assert packet.meta.part_number is None
        assert packet.meta.blueprint_url is None
        summary = header_summary(packet)
        assert summary["part_number"] == PLACEHOLDER
        assert summary["thread"] == PLACEHOLDER
        assert summary["ndt"] == PLACEHOLDER
        assert summary["blueprint_url"] is None

    def test_meta_is_merged(self):
        meta = PacketMeta(
            order_id="441",
            part_number="PN-8821",
            required_thread='2-3/8" 8RD',
            ndt_type="MT",
            blueprint_url="https://example.com/bp.pdf",
        )
        summary = header_summary(open_packet("441", meta))
        assert summary == {
            "part_number": "PN-8821",
            "thread": '2-3/8" 8RD',
            "ndt": "MT",
            "blueprint_url": "https://example.com/bp.pdf",
        }

    def test_captured_rows_are_not_mutated(self):
        report = InspectionReport(dimensions=[DimensionRow(serial="1", l1="0.003", od="bad", remarks="chip")])
        before = report.model_dump()
        packet = open_packet("441", report=report)
        assert packet.report.dimensions[0].l1 == "0.003"
        assert packet.report.dimensions[0].od == "bad"
        packet.report.dimensions[0].l1 = "0.001"
        assert report.model_dump() == before

    def test_gauge_uses_carried_through(self):
        record = record_use(make_gauge(), Role.OPERATOR, NOW)
        packet = open_packet("441", gauge_uses={"g1": record})
        assert packet.gauge_uses == {"g1": record}

    @pytest.mark.parametrize("order_id", ["", "   ", None])
    def test_blank_order_id_rejected(self, order_id):
        with pytest.raises(PacketValidationError):
            open_packet(order_id)


class TestRowHelpers:
    def test_add_row_numbers_next_serial(self):
        report = add_row(new_report(2))
        assert [r.serial for r in report.dimensions] == ["1", "2", "3"]

    def test_remove_last_row(self):
        report = remove_last_row(new_report(3))
        assert [r.serial for r in report.dimensions] == ["1", "2"]

    def test_remove_keeps_one_row(self):
        report = new_report(1)
        assert remove_last_row(report).dimensions == report.dimensions

    def test_helpers_do_not_modify_input(self):
        report = new_report(2)
        add_row(report)
        remove_last_row(report)
        assert len(report.dimensions) == 2
