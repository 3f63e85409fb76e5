"""Tests for configuration loading and validation."""

from dataclasses import replace

import pytest

from src.config import (
    AppConfig,
    EmbeddingConfig,
    IndexConfig,
    InquiryConfig,
    MatchingConfig,
    MessagingConfig,
    SessionConfig,
    TimeoutConfig,
    _validate_config,
)


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        config = AppConfig()
        _validate_config(config)  # should not raise

    def test_defaults_match_documented_limits(self):
        config = AppConfig()
        assert config.matching.max_results == 5
        assert config.matching.top_k == 1000
        assert config.matching.region_prefix_length == 2
        assert config.inquiry.reference_marker == "#"

    def test_zero_top_k(self):
        matching = MatchingConfig.__new__(MatchingConfig)
        object.__setattr__(matching, "fallback_query", "chemicals")
        object.__setattr__(matching, "top_k", 0)
        object.__setattr__(matching, "max_results", 5)
        object.__setattr__(matching, "region_prefix_length", 2)
        object.__setattr__(matching, "pincode_length", 6)

        config = replace(AppConfig(), matching=matching)
        with pytest.raises(ValueError, match="SEARCH_TOP_K"):
            _validate_config(config)

    def test_max_results_above_top_k(self):
        config = replace(AppConfig(), matching=replace(MatchingConfig(), top_k=3, max_results=5))
        with pytest.raises(ValueError, match="MAX_RESULTS"):
            _validate_config(config)

    def test_region_prefix_longer_than_pincode(self):
        config = replace(AppConfig(), matching=replace(MatchingConfig(), region_prefix_length=7))
        with pytest.raises(ValueError, match="REGION_PREFIX_LENGTH"):
            _validate_config(config)

    def test_non_positive_timeout(self):
        config = replace(AppConfig(), timeouts=replace(TimeoutConfig(), send_sec=0))
        with pytest.raises(ValueError, match="SEND_TIMEOUT"):
            _validate_config(config)

    @pytest.mark.parametrize("marker", ["", "##", "7"])
    def test_bad_inquiry_marker(self, marker):
        config = replace(AppConfig(), inquiry=replace(InquiryConfig(), reference_marker=marker))
        with pytest.raises(ValueError, match="INQUIRY_MARKER"):
            _validate_config(config)

    def test_negative_retention(self):
        config = replace(AppConfig(), inquiry=replace(InquiryConfig(), retention_hours=-1))
        with pytest.raises(ValueError, match="INQUIRY_RETENTION_HOURS"):
            _validate_config(config)

    def test_zero_input_length(self):
        config = replace(AppConfig(), session=replace(SessionConfig(), max_input_length=0))
        with pytest.raises(ValueError, match="MAX_INPUT_LENGTH"):
            _validate_config(config)

    @pytest.mark.parametrize("interval", [0, -5])
    def test_non_positive_sweep_interval(self, interval):
        config = replace(AppConfig(), session=replace(SessionConfig(), sweep_interval_sec=interval))
        with pytest.raises(ValueError, match="SWEEP_INTERVAL"):
            _validate_config(config)

    def test_production_backends_by_default(self):
        assert MessagingConfig().backend == "twilio"
        assert EmbeddingConfig().backend == "sentence-transformers"

    def test_unknown_messaging_backend(self):
        config = replace(AppConfig(), messaging=replace(MessagingConfig(), backend="sms"))
        with pytest.raises(ValueError, match="MESSAGING_BACKEND"):
            _validate_config(config)

    def test_unknown_index_backend(self):
        config = replace(AppConfig(), index=replace(IndexConfig(), backend="pinecone"))
        with pytest.raises(ValueError, match="INDEX_BACKEND"):
            _validate_config(config)

    def test_unknown_embedding_backend(self):
        config = replace(AppConfig(), embedding=replace(EmbeddingConfig(), backend="openai"))
        with pytest.raises(ValueError, match="EMBEDDING_BACKEND"):
            _validate_config(config)

    def test_safe_int_parsing(self):
        from src.config import _safe_int

        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_int_rejects_garbage(self, monkeypatch):
        from src.config import _safe_int

        monkeypatch.setenv("SUPPLIER_BOT_TEST_INT", "five")
        with pytest.raises(ValueError, match="SUPPLIER_BOT_TEST_INT"):
            _safe_int("SUPPLIER_BOT_TEST_INT", "5")

    def test_safe_float_parsing(self):
        from src.config import _safe_float

        assert _safe_float("NONEXISTENT_VAR_12345", "3.14") == pytest.approx(3.14)
