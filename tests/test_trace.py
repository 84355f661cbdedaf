"""Tests for the tool call trace."""

import pytest

from pump_cpq.conversation.trace import ToolTrace
from pump_cpq.tools.catalog import search_catalog
from pump_cpq.tools.pricing import PricingError, calculate_pricing
from pump_cpq.tools.selector import select_configuration

from tests.conftest import make_configuration, make_requirements


@pytest.fixture
def trace():
    return ToolTrace()


class TestRecording:
    def test_run_records_success(self, trace):
        result = trace.run("search_catalog", {"query": "family"}, search_catalog, "family")

        assert result.families == ["P100", "P200", "P300"]
        call = trace.calls[0]
        assert call.tool == "search_catalog"
        assert call.input == {"query": "family"}
        assert call.output["families"] == ["P100", "P200", "P300"]
        assert call.success
        assert call.duration_ms >= 0

    def test_models_and_dataclasses_serialized(self, trace):
        requirements = make_requirements()
        trace.run("select_configuration", {"requirements": requirements},
                  select_configuration, requirements)

        call = trace.calls[0]
        assert call.input["requirements"]["power_available"] == "230V_1ph"
        assert call.output["configuration"]["family"] == "P100"
        assert call.output["used_fallback"] is False

    def test_failure_recorded_and_raised(self, trace):
        config = make_configuration(family="P900")
        with pytest.raises(PricingError):
            trace.run("calculate_pricing", {"configuration": config}, calculate_pricing, config)

        call = trace.calls[0]
        assert not call.success
        assert "P900" in call.error
        assert call.output is None

    def test_shares_callers_list(self):
        calls = []
        ToolTrace(calls).record("search_catalog", {}, None, 1.0)
        assert len(calls) == 1


class TestSummary:
    def test_empty(self, trace):
        assert trace.summary() == {
            "total_calls": 0, "failed_calls": 0, "total_duration_ms": 0, "by_tool": {},
        }

    def test_counts(self, trace):
        trace.record("search_catalog", {}, None, 1.5)
        trace.record("search_catalog", {}, None, 2.0)
        trace.record("calculate_pricing", {}, None, 0.5, success=False, error="boom")

        summary = trace.summary()
        assert summary["total_calls"] == 3
        assert summary["failed_calls"] == 1
        assert summary["total_duration_ms"] == 4.0
        assert summary["by_tool"] == {"search_catalog": 2, "calculate_pricing": 1}
