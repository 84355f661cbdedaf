"""Tests for BOM assembly and quote totals."""

import pytest

from pump_cpq.schemas.quote_schema import MountType, PumpConfiguration, SealType
from pump_cpq.schemas.requirement_schema import Material, PowerSupply
from pump_cpq.tools.catalog import DEFAULT_CATALOG, PricedPart
from pump_cpq.tools.pricing import PricingError, build_bom, calculate_pricing, motor_key

from tests.conftest import make_configuration

SCENARIO_B = make_configuration(
    impeller="IMP-120-M", motor_hp=5, voltage=PowerSupply.THREE_PHASE_460V,
    seal_type=SealType.MECHANICAL,
)
SCENARIO_C = make_configuration(
    family="P200", impeller="IMP-180-XL", motor_hp=10,
    voltage=PowerSupply.THREE_PHASE_460V, seal_type=SealType.MECHANICAL,
    material=Material.STAINLESS, mount=MountType.BASE, atex=True,
)


@pytest.fixture
def catalog():
    return DEFAULT_CATALOG.model_copy(deep=True)


class TestMotorKey:
    @pytest.mark.parametrize("hp,voltage,expected", [
        (3, "230V_1ph", "3|230V_1ph"),
        (3.0, "460V_3ph", "3|460V_3ph"),
        (7.5, "460V_3ph", "7.5|460V_3ph"),
        (10.0, "460V_3ph", "10|460V_3ph"),
    ])
    def test_format(self, hp, voltage, expected):
        assert motor_key(hp, voltage) == expected


class TestTotals:
    @pytest.mark.parametrize("config,list_total,net_total", [
        (make_configuration(), 1765, 1412),
        (SCENARIO_B, 2385, 1908),
        (SCENARIO_C, 5415, 4332),
        (make_configuration(impeller="IMP-120-M", motor_hp=5), 2065, 1652),
    ])
    def test_scenario_totals(self, config, list_total, net_total):
        pricing = calculate_pricing(config)
        assert pricing.list_total == list_total
        assert pricing.net_total == net_total
        assert pricing.discount_percent == 20

    def test_list_total_is_sum_of_lines(self):
        pricing = calculate_pricing(SCENARIO_B)
        assert pricing.list_total == sum(item.extended_price for item in pricing.bom)

    def test_discount_override(self):
        pricing = calculate_pricing(make_configuration(), discount_percent=10)
        assert pricing.net_total == 1588.5

    def test_zero_discount(self):
        pricing = calculate_pricing(make_configuration(), discount_percent=0)
        assert pricing.net_total == pricing.list_total

    @pytest.mark.parametrize("discount", [-5, 100.5])
    def test_invalid_discount(self, discount):
        with pytest.raises(ValueError, match="Discount"):
            calculate_pricing(make_configuration(), discount_percent=discount)

    def test_totals_rounded_to_cents(self, catalog):
        catalog.bom.fasteners = PricedPart(sku="FST-KIT", description="Fastener kit", price=25.1234)
        pricing = calculate_pricing(make_configuration(), catalog)

        assert pricing.list_total == 1765.12
        assert pricing.net_total == pytest.approx(1412.10)
        fasteners = next(item for item in pricing.bom if item.sku == "FST-KIT")
        assert fasteners.extended_price == 25.1234


class TestBillOfMaterials:
    def test_line_order_with_atex(self):
        skus = [item.sku for item in build_bom(SCENARIO_C)]
        assert skus == [
            "CASE-P200-Stainless", "IMP-180-XL", "MTR-10-3PH", "SEAL-MECH-SS",
            "MNT-BASE", "CPL-STD", "ATEX-PKG", "FST-KIT", "FIN-EPOXY",
        ]

    def test_no_atex_line_without_package(self):
        skus = [item.sku for item in build_bom(make_configuration())]
        assert "ATEX-PKG" not in skus
        assert skus[0] == "CASE-P100-CastIron"
        assert len(skus) == 8

    def test_atex_line_price(self):
        atex = next(item for item in build_bom(SCENARIO_C) if item.sku == "ATEX-PKG")
        assert atex.extended_price == 1070

    def test_casing_description(self):
        casing = build_bom(SCENARIO_C)[0]
        assert casing.description == "P200 pump casing, Stainless"
        assert casing.unit_price == 1850

    def test_quantity_multiplies(self, catalog):
        catalog.bom.fasteners = PricedPart(sku="FST-KIT", description="Fastener kit", price=25, quantity=4)
        pricing = calculate_pricing(make_configuration(), catalog)

        fasteners = next(item for item in pricing.bom if item.sku == "FST-KIT")
        assert fasteners.quantity == 4
        assert fasteners.extended_price == 100
        assert pricing.list_total == 1840


class TestPricingErrors:
    def test_missing_motor_price(self, catalog):
        del catalog.bom.motors["3|230V_1ph"]
        with pytest.raises(PricingError, match="motor"):
            calculate_pricing(make_configuration(), catalog)

    def test_unknown_impeller(self):
        with pytest.raises(PricingError, match="impeller"):
            build_bom(make_configuration(impeller="IMP-999"))

    def test_unknown_family(self):
        with pytest.raises(PricingError, match="casing"):
            build_bom(make_configuration(family="P900"))

    def test_incomplete_configuration(self):
        with pytest.raises(PricingError, match="missing fields"):
            calculate_pricing(PumpConfiguration(family="P100"))
