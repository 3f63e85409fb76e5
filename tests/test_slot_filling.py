"""Tests for the slot manager and request draft lifecycle."""

import pytest

from src.conversation.slot_manager import SlotStatus, is_skip, parse_quantity
from src.schemas.request_schema import Proximity, SearchRequest


class TestSkipKeyword:
    @pytest.mark.parametrize("text", ["skip", "SKIP", "  Skip  "])
    def test_skip_is_case_insensitive(self, text):
        assert is_skip(text)

    def test_skip_must_be_whole_message(self):
        assert not is_skip("skip it")


class TestTextSlots:
    def test_product_name_kept_verbatim(self, slot_manager):
        ok, _ = slot_manager.fill_or_skip("product_name", "Sodium")
        assert ok is True
        assert slot_manager.slots["product_name"].normalized_value == "Sodium"

    def test_product_name_skip_leaves_empty(self, slot_manager):
        ok, _ = slot_manager.fill_or_skip("product_name", "skip")
        assert ok is True
        assert slot_manager.slots["product_name"].status == SlotStatus.SKIPPED
        assert slot_manager.slots["product_name"].normalized_value is None

    def test_blank_product_name_rejected(self, slot_manager):
        ok, msg = slot_manager.fill_or_skip("product_name", "   ")
        assert ok is False
        assert "doesn't look right" in msg


class TestQuantity:
    @pytest.mark.parametrize("raw, expected", [
        ("500", 500.0), ("0", 0.0), ("12.5", 12.5), ("500 kg", 500.0), ("12.5kg", 12.5),
        ("1e3 units", 1000.0), (".5 t", 0.5),
    ])
    def test_valid_quantity(self, slot_manager, raw, expected):
        ok, _ = slot_manager.set_slot("quantity", raw)
        assert ok is True
        assert slot_manager.slots["quantity"].normalized_value == expected

    @pytest.mark.parametrize("raw", ["-1", "lots", "", "nan", "inf", "kg 500", "1e400", "-2 kg"])
    def test_invalid_quantity(self, slot_manager, raw):
        ok, _ = slot_manager.set_slot("quantity", raw)
        assert ok is False
        assert slot_manager.slots["quantity"].status == SlotStatus.INVALID
        assert slot_manager.slots["quantity"].normalized_value is None

    def test_request_carries_leading_number(self, slot_manager):
        slot_manager.fill_or_skip("quantity", "500 kg")
        assert slot_manager.to_request().quantity == 500.0

    @pytest.mark.parametrize("raw, expected", [
        ("  42 pcs", 42.0), ("+3", 3.0), ("7.", 7.0), ("kg", None), ("nan", None), ("inf", None),
    ])
    def test_parse_quantity(self, raw, expected):
        assert parse_quantity(raw) == expected

    def test_rejected_values_are_recorded(self, slot_manager):
        slot_manager.set_slot("quantity", "lots")
        slot_manager.set_slot("quantity", "-5")
        assert slot_manager.slots["quantity"].rejected_values == ["lots", "-5"]


class TestPincode:
    def test_six_digits_accepted(self, slot_manager):
        ok, _ = slot_manager.set_slot("pincode", "390013")
        assert ok is True
        assert slot_manager.slots["pincode"].normalized_value == "390013"

    @pytest.mark.parametrize("raw", [
        "39001", "3900133", "39O013", "390 013",
        # non-ASCII digits
        "39000³", "٣٩٠٠٠١", "３90001",
    ])
    def test_malformed_pincode_rejected(self, slot_manager, raw):
        ok, _ = slot_manager.set_slot("pincode", raw)
        assert ok is False


class TestProximity:
    @pytest.mark.parametrize("raw, expected", [
        ("same", Proximity.SAME), ("PAN", Proximity.PAN), (" Same ", Proximity.SAME),
    ])
    def test_valid_proximity(self, slot_manager, raw, expected):
        ok, _ = slot_manager.set_slot("proximity", raw)
        assert ok is True
        assert slot_manager.slots["proximity"].normalized_value == expected

    def test_other_words_rejected(self, slot_manager):
        ok, _ = slot_manager.set_slot("proximity", "anywhere")
        assert ok is False

    def test_proximity_cannot_be_skipped(self, slot_manager):
        ok, _ = slot_manager.fill_or_skip("proximity", "skip")
        assert ok is False
        with pytest.raises(ValueError):
            slot_manager.skip_slot("proximity")


class TestRequestExport:
    def test_empty_draft_gives_empty_request(self, slot_manager):
        assert slot_manager.to_request() == SearchRequest()

    def test_request_reflects_non_skipped_answers(self, slot_manager):
        slot_manager.fill_or_skip("product_name", "Sodium")
        slot_manager.fill_or_skip("category", "skip")
        slot_manager.fill_or_skip("quantity", "250")
        slot_manager.fill_or_skip("pincode", "390013")
        slot_manager.fill_or_skip("proximity", "pan")
        request = slot_manager.to_request()
        assert request.product_name == "Sodium"
        assert request.category is None
        assert request.quantity == 250.0
        assert request.pincode == "390013"
        assert request.proximity == Proximity.PAN

    def test_skip_marks_only_that_slot(self, slot_manager):
        slot_manager.fill_or_skip("product_name", "skip")
        assert slot_manager.slots["product_name"].status == SlotStatus.SKIPPED
        assert slot_manager.slots["category"].status == SlotStatus.EMPTY

    def test_reset_clears_draft(self, slot_manager):
        slot_manager.fill_or_skip("product_name", "Sodium")
        slot_manager.reset()
        assert slot_manager.to_dict() == {}
        assert all(s.status == SlotStatus.EMPTY for s in slot_manager.slots.values())

    def test_unknown_slot_raises(self, slot_manager):
        with pytest.raises(ValueError, match="Unknown slot"):
            slot_manager.set_slot("colour", "blue")

    def test_stats(self, slot_manager):
        slot_manager.fill_or_skip("product_name", "Sodium")
        slot_manager.fill_or_skip("category", "skip")
        slot_manager.fill_or_skip("quantity", "x")
        stats = slot_manager.get_stats()
        assert stats == {"total_attempts": 3, "rejected": 1, "filled": 1, "skipped": 1}
