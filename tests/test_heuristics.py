"""Tests for the deterministic fallback extraction strategy."""

from typing import Optional

import pytest

from pump_cpq.conversation.extractor import ExtractionRequest
from pump_cpq.conversation.heuristics import HeuristicExtractionStrategy
from pump_cpq.conversation.state_machine import QuotePhase
from pump_cpq.schemas.customer_schema import CustomerInfo
from pump_cpq.schemas.requirement_schema import PumpRequirements


@pytest.fixture
def strategy():
    return HeuristicExtractionStrategy()


def make_request(
    message: str,
    pending: Optional[str] = None,
    requirements: Optional[PumpRequirements] = None,
    phase: QuotePhase = QuotePhase.GATHERING,
) -> ExtractionRequest:
    return ExtractionRequest(
        phase=phase,
        last_question="",
        pending_field=pending,
        customer=CustomerInfo(),
        requirements=requirements or PumpRequirements(),
        message=message,
    )


class TestContactDetails:
    def test_email_and_phone(self, strategy):
        updates = strategy.extract(
            make_request("reach me at jo@example.com or 555-123-4567", "email_or_phone")
        )
        assert updates["email"] == "jo@example.com"
        assert updates["phone"] == "5551234567"

    def test_short_number_is_not_a_phone(self, strategy):
        assert "phone" not in strategy.extract(make_request("call 555-1234", "email_or_phone"))

    def test_phone_digits_not_read_as_flow(self, strategy):
        updates = strategy.extract(make_request("5551234567", "gpm"))
        assert updates == {"phone": "5551234567"}


class TestFlowAndHead:
    def test_explicit_units(self, strategy):
        updates = strategy.extract(make_request("about 40 gpm at 60 ft"))
        assert updates["gpm"] == 40.0
        assert updates["headFt"] == 60.0

    def test_unitless_pair_while_asking_flow(self, strategy):
        updates = strategy.extract(make_request("40 and 60", "gpm"))
        assert updates["gpm"] == 40.0
        assert updates["headFt"] == 60.0

    def test_unitless_number_is_head_when_flow_known(self, strategy):
        updates = strategy.extract(make_request("60", "headFt", PumpRequirements(gpm=40)))
        assert updates == {"headFt": 60.0}

    def test_unitless_number_ignored_for_other_questions(self, strategy):
        assert strategy.extract(make_request("40", "fluid")).get("gpm") is None

    def test_voltage_number_is_not_flow(self, strategy):
        updates = strategy.extract(make_request("230V", "gpm"))
        assert "gpm" not in updates
        assert updates["powerAvailable"] == "230V_1ph"


class TestKeywords:
    @pytest.mark.parametrize("message,expected", [
        ("230V_1ph", "230V_1ph"),
        ("we have 230 volt single phase", "230V_1ph"),
        ("460V three phase", "460V_3ph"),
        ("480 volts, 3 phase", "460V_3ph"),
    ])
    def test_power(self, strategy, message, expected):
        assert strategy.extract(make_request(message))["powerAvailable"] == expected

    def test_flow_of_230_is_not_power(self, strategy):
        updates = strategy.extract(make_request("230 gpm"))
        assert updates == {"gpm": 230.0}

    @pytest.mark.parametrize("message,pending,field", [
        ("230", "gpm", "gpm"),
        ("460", "gpm", "gpm"),
        ("230", "headFt", "headFt"),
        ("480", "headFt", "headFt"),
    ])
    def test_bare_voltage_number_answering_flow_or_head(self, strategy, message, pending, field):
        requirements = PumpRequirements(gpm=40) if pending == "headFt" else None
        updates = strategy.extract(make_request(message, pending, requirements))
        assert updates == {field: float(message)}

    @pytest.mark.parametrize("message,expected", [("230", "230V_1ph"), ("480", "460V_3ph")])
    def test_bare_voltage_while_asking_power(self, strategy, message, expected):
        updates = strategy.extract(make_request(message, "powerAvailable"))
        assert updates == {"powerAvailable": expected}

    def test_bare_voltage_ignored_for_other_questions(self, strategy):
        assert "powerAvailable" not in strategy.extract(make_request("460", "fluid"))

    @pytest.mark.parametrize("message,expected", [
        ("non-ATEX", "non-ATEX"),
        ("it's not an ATEX area", "non-ATEX"),
        ("ATEX zone 1", "ATEX"),
        ("the area has explosive vapours", "ATEX"),
    ])
    def test_environment(self, strategy, message, expected):
        assert strategy.extract(make_request(message))["environment"] == expected

    def test_short_no_only_while_asking_environment(self, strategy):
        assert strategy.extract(make_request("no", "environment"))["environment"] == "non-ATEX"
        assert "environment" not in strategy.extract(make_request("no", "fluid"))

    def test_material(self, strategy):
        assert strategy.extract(make_request("stainless please"))["materialPref"] == "Stainless"
        assert strategy.extract(make_request("cast iron is fine"))["materialPref"] == "CastIron"

    @pytest.mark.parametrize("message", ["grade 316", "304 ss", "316L stainless"])
    def test_stainless_grade(self, strategy, message):
        assert strategy.extract(make_request(message))["materialPref"] == "Stainless"

    def test_bare_grade_while_asking_material(self, strategy):
        assert strategy.extract(make_request("316L", "materialPref")) == {"materialPref": "Stainless"}

    @pytest.mark.parametrize("message,pending", [("about 304 gpm", "gpm"), ("316", "headFt")])
    def test_grade_number_as_flow_or_head_is_not_material(self, strategy, message, pending):
        requirements = PumpRequirements(gpm=40) if pending == "headFt" else None
        updates = strategy.extract(make_request(message, pending, requirements))
        assert "materialPref" not in updates

    def test_no_preference_material_is_cast_iron(self, strategy):
        updates = strategy.extract(make_request("no preference", "materialPref"))
        assert updates == {"materialPref": "CastIron"}

    def test_no_preference_maintenance_is_budget(self, strategy):
        updates = strategy.extract(make_request("don't care", "maintenanceBias"))
        assert updates == {"maintenanceBias": "budget"}

    def test_maintenance(self, strategy):
        assert strategy.extract(make_request("low maintenance"))["maintenanceBias"] == "low-maintenance"
        assert strategy.extract(make_request("keep it cheap"))["maintenanceBias"] == "budget"

    def test_fluid_vocabulary(self, strategy):
        assert strategy.extract(make_request("mostly diesel"))["fluid"] == "diesel"

    def test_free_text_fluid_while_asking_fluid(self, strategy):
        assert strategy.extract(make_request("hydraulic fluid", "fluid"))["fluid"] == "hydraulic fluid"


class TestNamesAndCompanies:
    def test_name_from_introduction(self, strategy):
        updates = strategy.extract(make_request("my name is Dana Fields", "name"))
        assert updates["name"] == "Dana Fields"

    def test_bare_name(self, strategy):
        assert strategy.extract(make_request("Lee Park", "name"))["name"] == "Lee Park"

    def test_sentence_is_not_a_name(self, strategy):
        assert "name" not in strategy.extract(make_request("I'm looking for a pump", "name"))

    def test_name_not_guessed_for_other_questions(self, strategy):
        assert "name" not in strategy.extract(make_request("Dana Fields", "fluid"))

    def test_company_from_introduction(self, strategy):
        updates = strategy.extract(make_request("I work for Acme Pumps Inc", "company"))
        assert updates["company"] == "Acme Pumps Inc"

    def test_bare_company(self, strategy):
        assert strategy.extract(make_request("Acme Water", "company"))["company"] == "Acme Water"

    def test_company_excludes_contact_details(self, strategy):
        updates = strategy.extract(make_request("Acme Corp, jo@acme.com", "company"))
        assert updates == {"email": "jo@acme.com", "company": "Acme Corp"}

    def test_name_excludes_contact_details(self, strategy):
        updates = strategy.extract(make_request("Dana Fields, 555-123-4567", "name"))
        assert updates == {"phone": "5551234567", "name": "Dana Fields"}

    def test_personal_use_is_not_a_company(self, strategy):
        assert "company" not in strategy.extract(make_request("it's for my home", "company"))
