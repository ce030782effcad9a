from decimal import Decimal

import pytest

from inspectflow.schemas.packets import ConnectionVariant, DimensionRow, RowResult
from inspectflow.services.measurements import (
    commit_value,
    evaluate,
    evaluate_row,
    infer_variant,
    is_out_of_tolerance,
    parse_measurement,
)
from inspectflow.services.tolerances import (
    MEASUREMENT_KEYS,
    TOLERANCES,
    CenteredRule,
    RangeRule,
    canonical_key,
    rule_for,
)


class TestToleranceTable:
    def test_six_ruled_keys(self):
        assert set(TOLERANCES) == {"l1", "lead", "taper_avg", "thread_height", "standoff", "id"}
        assert set(TOLERANCES) <= set(MEASUREMENT_KEYS)

    def test_rule_kinds(self):
        assert isinstance(TOLERANCES["l1"], CenteredRule)
        assert isinstance(TOLERANCES["standoff"], CenteredRule)
        assert TOLERANCES["lead"] == RangeRule(Decimal("0.002"), Decimal("0.006"))
        assert TOLERANCES["id"] == RangeRule(Decimal("5.275"), Decimal("5.375"))

    def test_labels(self):
        assert TOLERANCES["l1"].label() == "± 0.002"
        assert TOLERANCES["lead"].label() == "0.002 – 0.006"

    def test_camel_case_keys_resolve(self):
        assert canonical_key("taperAvg") == "taper_avg"
        assert canonical_key("threadHeight") == "thread_height"
        assert rule_for("taperAvg") is TOLERANCES["taper_avg"]
        assert rule_for("od") is None


class TestParseMeasurement:
    @pytest.mark.parametrize("raw", ["", None])
    def test_empty_is_null_and_valid(self, raw):
        result = parse_measurement(raw)
        assert result.parsed is None
        assert result.is_valid
        assert not result.is_partial

    @pytest.mark.parametrize("raw", ["-", ".", "-."])
    def test_transitional_tokens(self, raw):
        result = parse_measurement(raw)
        assert result.parsed is None
        assert result.is_partial
        assert result.is_valid

    @pytest.mark.parametrize(
        "raw, expected",
        [("5", "5"), ("-12", "-12"), ("0.002", "0.002"), (".5", "0.5"), ("-.125", "-0.125")],
    )
    def test_well_formed_decimals(self, raw, expected):
        result = parse_measurement(raw)
        assert result.parsed == Decimal(expected)
        assert result.is_valid

    @pytest.mark.parametrize("raw", ["abc", "1.2.3", "5.", "+1", " 1", "1 ", "1e3", "--1", "0.1\n"])
    def test_malformed_text_is_flagged_and_kept(self, raw):
        result = parse_measurement(raw)
        assert not result.is_valid
        assert result.parsed is None
        assert result.raw == raw


class TestEvaluate:
    """Bounds are inclusive; one unit beyond a bound fails."""

    @pytest.mark.parametrize(
        "key, raw",
        [
            ("l1", "0.002"),
            ("l1", "-0.002"),
            ("lead", "0.002"),
            ("lead", "0.006"),
            ("taper_avg", "0.061"),
            ("taperAvg", "0.066"),
            ("thread_height", "0.020"),
            ("threadHeight", "0.030"),
            ("id", "5.275"),
            ("id", "5.375"),
            ("standoff", "0.125"),
            ("standoff", "-0.125"),
        ],
    )
    def test_values_at_bounds_pass(self, key, raw):
        result = evaluate(key, raw)
        assert result.parsed is not None
        assert not result.out_of_tolerance

    @pytest.mark.parametrize(
        "key, raw",
        [
            ("l1", "0.0021"),
            ("l1", "-0.003"),
            ("lead", "0.0019"),
            ("lead", "0.0061"),
            ("lead", "-0.004"),
            ("taper_avg", "0.0609"),
            ("taper_avg", "0.0661"),
            ("thread_height", "0.0199"),
            ("thread_height", "0.0301"),
            ("id", "5.274"),
            ("id", "5.376"),
            ("standoff", "-0.126"),
            ("standoff", "0.126"),
        ],
    )
    def test_values_beyond_bounds_fail(self, key, raw):
        assert evaluate(key, raw).out_of_tolerance
        assert is_out_of_tolerance(key, raw)

    @pytest.mark.parametrize("raw", ["", "-", ".", "-.", "junk"])
    @pytest.mark.parametrize("key", sorted(TOLERANCES))
    def test_unparsed_text_never_out_of_tolerance(self, key, raw):
        assert not evaluate(key, raw).out_of_tolerance

    def test_unruled_keys_are_informational(self):
        for key in ("od", "l4", "taper_a", "overall_length", "sealFaceMinusL1"):
            result = evaluate(key, "999")
            assert result.parsed == Decimal("999")
            assert not result.out_of_tolerance

    def test_custom_table(self):
        table = {"od": RangeRule(Decimal("1"), Decimal("2"))}
        assert evaluate("od", "3", table).out_of_tolerance
        assert not evaluate("l1", "3", table).out_of_tolerance


class TestEvaluateRow:
    def test_mixed_row(self):
        row = DimensionRow(serial="1", l1="0.003", lead="0.004", id="5.3", od="abc", standoff="-")
        ev = evaluate_row(row)
        assert ev.serial == "1"
        assert set(ev.fields) == set(MEASUREMENT_KEYS)
        assert ev.out_of_tolerance_keys == ["l1"]
        assert ev.invalid_keys == ["od"]
        assert ev.fields["standoff"].is_partial
        assert ev.suggested_result == RowResult.REJECT

    def test_complete_passing_row_suggests_accept(self):
        row = DimensionRow(
            serial="2",
            l1="0.001",
            lead="0.004",
            taper_avg="0.063",
            thread_height="0.025",
            standoff="0.1",
            id="5.3",
        )
        assert evaluate_row(row).suggested_result == RowResult.ACCEPT

    def test_incomplete_row_has_no_suggestion(self):
        row = DimensionRow(serial="3", l1="0.001")
        assert evaluate_row(row).suggested_result == RowResult.UNSET

    def test_custom_table_drives_suggestion(self):
        table = {"od": RangeRule(Decimal("1"), Decimal("2"))}
        assert evaluate_row(DimensionRow(serial="5", od="1.5"), table).suggested_result == RowResult.ACCEPT
        rejected = evaluate_row(DimensionRow(serial="6", od="3", l1="9"), table)
        assert rejected.out_of_tolerance_keys == ["od"]
        assert rejected.suggested_result == RowResult.REJECT

    def test_row_is_not_modified(self):
        row = DimensionRow(serial="4", l1="-.", od="bad")
        before = row.model_dump()
        evaluate_row(row)
        assert row.model_dump() == before


class TestFormHelpers:
    @pytest.mark.parametrize("raw", ["-", ".", "-."])
    def test_commit_clears_transitional_tokens(self, raw):
        assert commit_value(raw) == ""

    @pytest.mark.parametrize("raw", ["", "0.002", "junk"])
    def test_commit_keeps_everything_else(self, raw):
        assert commit_value(raw) == raw

    def test_infer_variant(self):
        assert infer_variant("2-3/8 EUE BOX end", ConnectionVariant.PIN) == ConnectionVariant.BOX
        assert infer_variant("pin end", ConnectionVariant.BOX) == ConnectionVariant.PIN
        assert infer_variant("PIN x BOX coupling", ConnectionVariant.PIN) == ConnectionVariant.BOX
        assert infer_variant("spinner", ConnectionVariant.BOX) == ConnectionVariant.BOX
        assert infer_variant("", ConnectionVariant.BOX) == ConnectionVariant.BOX
