"""Unit tests for analyze request validation."""

import pytest

from config.errors import ErrorCode, ValidationError
from validators.request_validator import MAX_DESCRIPTION_LENGTH, validate_analyze_request
from tests.fixtures.mock_costing_data import OREO_CURRENT_STATE


class TestAnalysisRequests:
    """Tests for analysis requests."""

    def test_valid_request(self):
        """Test a description with volume."""
        request = validate_analyze_request({"productDescription": "  Oreo cookie ", "aum": 50000000})

        assert request.product_description == "Oreo cookie"
        assert request.aum == 50000000.0
        assert request.is_approval is False

    def test_aum_optional(self):
        """Test the volume may be omitted."""
        assert validate_analyze_request({"productDescription": "Mug"}).aum is None

    @pytest.mark.parametrize("body", [{}, {"productDescription": ""}, {"productDescription": "   "},
                                      {"productDescription": 42}])
    def test_missing_description(self, body):
        """Test analysis requests require a description."""
        with pytest.raises(ValidationError) as exc_info:
            validate_analyze_request(body)

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert exc_info.value.field == "productDescription"

    def test_description_too_long(self):
        """Test oversized descriptions are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_analyze_request({"productDescription": "x" * (MAX_DESCRIPTION_LENGTH + 1)})

        assert exc_info.value.details["length"] == MAX_DESCRIPTION_LENGTH + 1

    @pytest.mark.parametrize("aum", ["lots", True, [1]])
    def test_aum_not_a_number(self, aum):
        """Test non-numeric volumes are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_analyze_request({"productDescription": "Mug", "aum": aum})

        assert exc_info.value.message == "aum must be a number"

    @pytest.mark.parametrize("aum", [0, -5, float("inf"), float("nan")])
    def test_aum_not_positive(self, aum):
        """Test zero, negative and non-finite volumes are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_analyze_request({"productDescription": "Mug", "aum": aum})

        assert exc_info.value.field == "aum"

    def test_body_must_be_object(self):
        """Test non-object bodies are rejected."""
        with pytest.raises(ValidationError):
            validate_analyze_request(["Oreo cookie"])


class TestApprovalRequests:
    """Tests for approval requests."""

    def test_valid_approval(self):
        """Test approval with a computed state."""
        request = validate_analyze_request({"action": "approve", "currentState": OREO_CURRENT_STATE})

        assert request.is_approval is True
        assert request.current_state is OREO_CURRENT_STATE
        assert request.product_description is None

    def test_approval_needs_state(self):
        """Test approval without currentState is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_analyze_request({"action": "approve", "productDescription": "Mug"})

        assert exc_info.value.field == "currentState"

    def test_approval_needs_breakdown(self):
        """Test approval state must carry the Ex-Works breakdown."""
        state = {k: v for k, v in OREO_CURRENT_STATE.items() if k != "exWorksCostBreakdown"}

        with pytest.raises(ValidationError) as exc_info:
            validate_analyze_request({"action": "approve", "currentState": state})

        assert exc_info.value.field == "currentState.exWorksCostBreakdown"

    def test_unknown_action(self):
        """Test unsupported actions are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_analyze_request({"action": "reject", "productDescription": "Mug"})

        assert exc_info.value.field == "action"
