from decimal import Decimal

import pytest

from gstcore.services.gst_service import (
    GST_STATE_CODES,
    is_inter_state,
    normalized_state,
    resolve_state_name,
    split_amount,
    split_gst,
)


class TestNormalizedState:
    def test_explicit_state_is_trimmed_and_lowercased(self):
        assert normalized_state("  Haryana ", None) == "haryana"

    def test_state_wins_over_gstin(self):
        assert normalized_state("Delhi", "27AAACP1234B1Z2") == "delhi"

    def test_blank_state_falls_back_to_gstin(self):
        assert normalized_state("   ", "27AAACP1234B1Z2") == "maharashtra"
        assert normalized_state(None, "06AABCA1234A1Z5") == "haryana"

    def test_unknown_code_or_short_gstin_is_unresolved(self):
        assert normalized_state(None, "99AAAAA0000A1Z0") is None
        assert normalized_state(None, "2") is None
        assert normalized_state("", None) is None

    def test_both_andhra_codes_resolve_to_same_state(self):
        assert GST_STATE_CODES["28"] == GST_STATE_CODES["37"] == "Andhra Pradesh"
        assert normalized_state(None, "28AAAAA0000A1Z0") == normalized_state(None, "37AAAAA0000A1Z0")

    def test_table_covers_01_to_37(self):
        assert sorted(GST_STATE_CODES) == [f"{i:02d}" for i in range(1, 38)]


def test_resolve_state_name_keeps_display_case():
    assert resolve_state_name(" Tamil Nadu ", None) == "Tamil Nadu"
    assert resolve_state_name(None, "29AAACB1234D1Z1") == "Karnataka"
    assert resolve_state_name(None, None) == ""


class TestIsInterState:
    def test_same_state_ignoring_case_and_whitespace(self):
        assert is_inter_state("Haryana", "  HARYANA") is False

    def test_different_states(self):
        assert is_inter_state("Haryana", "Maharashtra") is True

    def test_gstin_only_sides(self):
        assert is_inter_state(None, None, "06AABCA1234A1Z5", "27AAACP1234B1Z2") is True
        assert is_inter_state(None, None, "06AABCA1234A1Z5", "06AAACG1234C1Z9") is False

    def test_unresolved_side_defaults_to_intra_state(self, caplog):
        assert is_inter_state("Haryana", None) is False
        assert is_inter_state(None, "Maharashtra") is False
        assert "treating supply as intra-state" in caplog.text


class TestSplit:
    def test_inter_state_all_igst(self):
        split = split_amount(Decimal("39000"), inter_state=True)
        assert split.igst == Decimal("39000.00")
        assert split.cgst == split.sgst == Decimal("0")

    def test_intra_state_even_split(self):
        split = split_amount(Decimal("39000"), inter_state=False)
        assert split.cgst == split.sgst == Decimal("19500.00")
        assert split.igst == Decimal("0")

    @pytest.mark.parametrize("tax", ["0.01", "0.03", "10.05", "999.99", "12345.67"])
    def test_odd_paisa_goes_to_cgst_and_parts_sum_exactly(self, tax):
        tax = Decimal(tax)
        split = split_amount(tax, inter_state=False)
        assert split.cgst + split.sgst == tax
        assert split.cgst - split.sgst in (Decimal("0.00"), Decimal("0.01"))
        assert split.total == tax

    def test_split_gst_resolves_jurisdiction(self):
        assert split_gst(Decimal("18"), "Karnataka", "Kerala").igst == Decimal("18.00")
        assert split_gst(Decimal("18"), "Kerala", "kerala").cgst == Decimal("9.00")
