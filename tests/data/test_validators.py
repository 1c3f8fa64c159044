"""Tests for observation, symbol and snapshot payload validation."""

import math

import pytest

from ensemble_app.data.models import Observation
from ensemble_app.data.validators import (
    is_valid_number,
    is_valid_observation,
    is_valid_symbol,
    normalize_symbol,
    sanitize_array,
    validate_history_payload,
    validate_observation,
    validate_price_array,
    validate_technical_inputs,
)
from ensemble_app.errors import ValidationError


class TestNumberValidation:
    """Test the numeric predicates."""

    @pytest.mark.parametrize("value", [1, 0.5, 1e9])
    def test_positive_finite_numbers_are_valid(self, value):
        assert is_valid_number(value) is True

    @pytest.mark.parametrize("value", [0, -1.0, math.nan, math.inf, "10", None, True, 10**400])
    def test_invalid_numbers_are_rejected(self, value):
        assert is_valid_number(value) is False

    def test_price_array_requires_min_length(self):
        assert validate_price_array([1.0, 2.0], min_length=2) is True
        assert validate_price_array([1.0], min_length=2) is False
        assert validate_price_array([1.0, -2.0]) is False
        assert validate_price_array("abc") is False

    def test_sanitize_array_drops_invalid_values(self):
        assert sanitize_array([1.0, None, -3, 2, math.nan]) == [1.0, 2.0]
        assert sanitize_array("123") == []


class TestObservationValidation:
    """Test observation validation."""

    def test_valid_observation_is_returned(self, sample_observation):
        assert validate_observation(sample_observation) is sample_observation

    def test_mapping_is_converted(self):
        observation = validate_observation({
            "timestamp": 1_700_000_000_000,
            "close": 10.0,
            "high": 11.0,
            "low": 9.0,
            "volume": 5.0,
        })
        assert isinstance(observation, Observation)
        assert observation.close == 10.0

    @pytest.mark.parametrize("field_name,value", [
        ("close", -1.0),
        ("close", math.nan),
        ("volume", 0.0),
        ("high", math.inf),
        ("timestamp", 0),
        ("timestamp", 1.5),
    ])
    def test_invalid_fields_are_rejected(self, sample_observation, field_name, value):
        data = sample_observation.to_dict()
        data[field_name] = value

        with pytest.raises(ValidationError) as exc_info:
            validate_observation(data)

        assert exc_info.value.field == field_name

    def test_high_below_low_is_rejected(self):
        with pytest.raises(ValidationError):
            validate_observation({"timestamp": 1, "close": 10.0, "high": 9.0, "low": 11.0, "volume": 1.0})

    def test_close_outside_range_is_rejected(self):
        assert is_valid_observation({"timestamp": 1, "close": 12.0, "high": 11.0, "low": 9.0, "volume": 1.0}) is False

    def test_missing_observation(self):
        assert is_valid_observation(None) is False


class TestTechnicalInputs:
    """Test validation of indicator input series."""

    def test_valid_inputs(self):
        result = validate_technical_inputs([2.0, 3.0], [1.0, 2.0], [1.5, 2.5], [10.0, 12.0])
        assert result.is_valid is True
        assert result.errors == []

    def test_collects_every_problem(self):
        result = validate_technical_inputs([], [1.0, -2.0], [1.0, 2.0])
        assert result.is_valid is False
        assert "Invalid highs array" in result.errors
        assert "Invalid lows array" in result.errors

    def test_length_mismatch(self):
        result = validate_technical_inputs([2.0, 3.0], [1.0], [1.5, 2.5])
        assert result.errors == ["Array lengths do not match"]


class TestSymbols:
    """Test symbol normalization."""

    def test_normalize_strips_and_uppercases(self):
        assert normalize_symbol("  xmr ") == "XMR"

    @pytest.mark.parametrize("symbol", ["", "X", "TOOLONGSYMBOL", "BTC-USD", "ÆØ", None, 42])
    def test_invalid_symbols_raise(self, symbol):
        with pytest.raises(ValidationError):
            normalize_symbol(symbol)

    def test_is_valid_symbol_requires_uppercase(self):
        assert is_valid_symbol("DOGE") is True
        assert is_valid_symbol("doge") is False


class TestHistoryPayload:
    """Test snapshot payload validation."""

    def test_valid_payload(self, make_history):
        assert validate_history_payload(make_history([10.0, 20.0, 30.0]).to_dict()) == []

    def test_empty_closes(self):
        assert validate_history_payload({"closes": [], "highs": [], "lows": [], "volumes": [], "timestamps": []})

    def test_non_numeric_closes(self, make_history):
        payload = make_history([10.0, 20.0]).to_dict()
        payload["closes"] = ["a", "b"]
        assert validate_history_payload(payload)

    def test_mismatched_lengths(self, make_history):
        payload = make_history([10.0, 20.0, 30.0]).to_dict()
        payload["volumes"] = payload["volumes"][:2]
        assert validate_history_payload(payload) == ["volumes length does not match closes"]

    def test_not_an_object(self):
        assert validate_history_payload([1, 2, 3]) == ["History is not an object"]
