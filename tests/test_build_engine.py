"""End-to-end tests for the wheel build orchestrator.

These run full build recipes against in-memory metadata, no network.
"""

import math
from collections import Counter

import pytest

from spokecalc.config import EngineConfig
from spokecalc.core.enums import BuildType, ErrorKind, Side, SpokeVendorClass, WheelPosition
from spokecalc.models.components import BuildRecipe
from spokecalc.services.build_engine import build_report, calculate_wheel
from spokecalc.services.metadata import MetadataResolver


def _metadata(**overrides) -> dict[str, dict[str, str]]:
    data = {
        "rim-v": {"erd": "600", "washer_policy": "Optional", "target_tension_kgf": "120"},
        "rim-p": {"erd": "590", "spoke_hole_offset": "0", "nipple_washer_thickness": "0"},
        "hub-v": {
            "hub_type": "Classic Flange",
            "flange_diameter_left": "58",
            "flange_diameter_right": "58",
            "flange_offset_left": "35",
            "flange_offset_right": "21",
            "spoke_hole_diameter": "2.6",
        },
        "spoke-v": {"cross_sectional_area": "2.01"},
    }
    for component_id, values in overrides.items():
        data[component_id] = {**data.get(component_id, {}), **values}
    return data


def _component(variant_id: str, product_id: str | None = None, **extra) -> dict:
    return {"variantId": variant_id, "productId": product_id, "title": variant_id, **extra}


def _recipe(
    build_type: str = "Wheel Set",
    spoke_count: str = "32",
    spoke_vendor: str = "Sapim",
    **components,
) -> BuildRecipe:
    spokes = _component(
        "spoke-v", vendor=spoke_vendor, selectedOptions=[{"name": "Color", "value": "Black"}]
    )
    defaults = {
        "frontRim": _component("rim-v", "rim-p"),
        "frontHub": _component("hub-v"),
        "frontSpokes": spokes,
        "rearRim": _component("rim-v", "rim-p"),
        "rearHub": _component("hub-v"),
        "rearSpokes": spokes,
    }
    defaults.update(components)
    return BuildRecipe.model_validate(
        {
            "buildType": build_type,
            "components": {k: v for k, v in defaults.items() if v is not None},
            "specs": {"frontSpokeCount": spoke_count, "rearSpokeCount": spoke_count},
        }
    )


# ---------------------------------------------------------------------------
# Recipe Parsing
# ---------------------------------------------------------------------------


class TestRecipe:
    @pytest.mark.parametrize("raw", ["Wheel Set", "WheelSet", "wheelset"])
    def test_wheel_set_spellings(self, raw):
        recipe = _recipe(build_type=raw)
        assert recipe.build_type is BuildType.WHEEL_SET
        assert recipe.positions == [WheelPosition.FRONT, WheelPosition.REAR]

    def test_spoke_count_spec_string(self):
        recipe = _recipe(spoke_count="28h")
        assert recipe.specs.spoke_count(WheelPosition.FRONT) == 28

    def test_selected_color(self):
        recipe = _recipe()
        assert recipe.components.front_spokes.color == "Black"

    def test_unknown_build_type_rejected(self):
        with pytest.raises(ValueError):
            _recipe(build_type="Unicycle")


# ---------------------------------------------------------------------------
# Successful Builds
# ---------------------------------------------------------------------------


class TestSuccessfulBuilds:
    def test_wheel_set_steel_golden(self):
        report = build_report(_recipe(), _metadata())
        assert report.errors == []
        assert report.successful
        for result in (report.front, report.rear):
            assert result is not None
            assert result.calculation_successful
            assert result.cross_pattern.left == 3
            assert result.lengths.left.geo == pytest.approx(290.9453, abs=1e-3)
            assert result.lengths.right.geo == pytest.approx(289.6009, abs=1e-3)
            assert result.lengths.left.rounded == 292
            assert result.lengths.right.rounded == 290
            assert result.lengths.left.stretch > 0

    def test_rounded_lengths_positive_even(self):
        report = build_report(_recipe(spoke_count="28"), _metadata())
        for result in (report.front, report.rear):
            for side in (result.lengths.left, result.lengths.right):
                assert side.rounded > 0
                assert side.rounded % 2 == 0

    def test_front_only(self):
        report = build_report(_recipe(build_type="Front"), _metadata())
        assert report.front is not None
        assert report.rear is None

    def test_variant_erd_overrides_product(self):
        report = build_report(_recipe(build_type="Rear"), _metadata())
        assert report.rear.inputs["rimErd"] == 600.0

    def test_washers_add_twice_thickness(self):
        metadata = _metadata(**{"rim-v": {"nipple_washer_thickness": "0.5"}})
        report = build_report(_recipe(build_type="Rear"), metadata)
        assert report.rear.inputs["finalErd"] == pytest.approx(601.0)

    def test_washers_ignored_when_not_compatible(self):
        metadata = _metadata(
            **{"rim-v": {"nipple_washer_thickness": "0.5", "washer_policy": "Not Compatible"}}
        )
        report = build_report(_recipe(build_type="Rear"), metadata)
        assert report.rear.inputs["finalErd"] == pytest.approx(600.0)

    def test_rim_asymmetry_signs_by_position(self):
        metadata = _metadata(**{"rim-p": {"spoke_hole_offset": "2"}})
        report = build_report(_recipe(), metadata)
        assert report.rear.inputs["effectiveFlangeLeft"] == pytest.approx(33.0)
        assert report.rear.inputs["effectiveFlangeRight"] == pytest.approx(23.0)
        assert report.front.inputs["effectiveFlangeLeft"] == pytest.approx(37.0)
        assert report.front.inputs["effectiveFlangeRight"] == pytest.approx(19.0)

    def test_elastomer_cored_puller_rounding(self):
        report = build_report(_recipe(spoke_vendor="Berd"), _metadata())
        for result in (report.front, report.rear):
            assert result.calculation_successful
            assert result.inputs["spokeVendorClass"] == SpokeVendorClass.ELASTOMER_CORED.value
            for side in (result.lengths.left, result.lengths.right):
                assert side.stretch is None
                assert side.final > side.geo
                assert side.rounded == math.floor(side.final + 0.5) - 2

    def test_straight_pull_hub(self):
        metadata = _metadata(
            **{"hub-v": {"hub_type": "Straight Pull", "sp_offset_left": "-1", "sp_offset_right": "-1"}}
        )
        report = build_report(_recipe(build_type="Rear"), metadata)
        assert report.rear.calculation_successful
        assert report.rear.inputs["hubType"] == "Straight Pull"

    def test_manual_lacing_from_metadata(self):
        metadata = _metadata(**{"hub-v": {"lacing_policy": "Manual Override", "manual_cross_value": "2"}})
        report = build_report(_recipe(build_type="Rear"), metadata)
        assert report.rear.cross_pattern.left == 2
        assert report.rear.cross_pattern.right == 2
        assert "manual" in report.rear.alert.lower()

    def test_cross_threshold_config(self):
        report = build_report(
            _recipe(spoke_count="28"), _metadata(), config=EngineConfig(default_cross_threshold=32)
        )
        assert report.front.cross_pattern.left == 2

    def test_lacing_fallback_alert(self):
        report = build_report(_recipe(build_type="Front", spoke_count="16"), _metadata())
        assert report.front.calculation_successful
        assert report.front.cross_pattern.left == 1
        assert "fallback" in report.front.alert.lower()

    def test_hook_flange_supported_by_default(self):
        metadata = _metadata(**{"hub-v": {"hub_type": "Hook Flange"}})
        report = build_report(_recipe(build_type="Rear", spoke_vendor="Berd"), metadata)
        assert report.rear.calculation_successful

    def test_spoke_order_lines(self):
        report = build_report(_recipe(), _metadata())
        assert len(report.spoke_order_lines) == 4
        rear_left = next(
            line
            for line in report.spoke_order_lines
            if line.position is WheelPosition.REAR and line.side is Side.LEFT
        )
        assert rear_left.quantity == 16
        assert rear_left.length_mm == 292
        assert rear_left.variant_id == "spoke-v"
        assert rear_left.color == "Black"

    def test_report_serializes_camel_case(self):
        payload = build_report(_recipe(), _metadata()).model_dump(by_alias=True, mode="json")
        assert payload["front"]["calculationSuccessful"] is True
        assert payload["front"]["crossPattern"] == {"left": 3, "right": 3}
        assert set(payload["front"]["lengths"]["left"]) == {"geo", "final", "stretch", "rounded"}
        assert "spokeOrderLines" in payload


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    def test_missing_hub_is_local_failure(self):
        report = build_report(_recipe(frontHub=None), _metadata())
        assert not report.front.calculation_successful
        assert report.front.error_kind is ErrorKind.MISSING_COMPONENT
        assert "hub" in report.front.error
        # The rear wheel still calculates and nothing is raised to build level
        assert report.rear.calculation_successful
        assert report.errors == []
        assert not report.successful

    def test_missing_spoke_count(self):
        report = build_report(_recipe(build_type="Front", spoke_count=""), _metadata())
        assert report.front.error_kind is ErrorKind.MISSING_COMPONENT
        assert "spoke count" in report.front.error

    def test_odd_spoke_count(self):
        report = build_report(_recipe(build_type="Front", spoke_count="31"), _metadata())
        assert report.front.error_kind is ErrorKind.UNSUPPORTED_CONFIGURATION

    def test_missing_spoke_hole_diameter_is_build_error(self):
        metadata = _metadata()
        del metadata["hub-v"]["spoke_hole_diameter"]
        report = build_report(_recipe(), metadata)
        assert report.front.error_kind is ErrorKind.MISSING_PARAMETER
        assert report.rear.error_kind is ErrorKind.MISSING_PARAMETER
        assert len(report.errors) == 2
        assert report.errors[0].startswith("Front wheel:")

    def test_missing_erd(self):
        metadata = _metadata()
        del metadata["rim-v"]["erd"]
        del metadata["rim-p"]["erd"]
        report = build_report(_recipe(build_type="Rear"), metadata)
        assert report.rear.error_kind is ErrorKind.MISSING_PARAMETER
        assert "erd" in report.rear.error

    def test_unrecognized_hub_type(self):
        metadata = _metadata(**{"hub-v": {"hub_type": "Wagon Wheel"}})
        report = build_report(_recipe(build_type="Rear"), metadata)
        assert report.rear.error_kind is ErrorKind.UNRECOGNIZED_VALUE
        assert report.errors

    def test_infeasible_manual_lacing(self):
        metadata = _metadata(**{"hub-v": {"lacing_policy": "Manual Override", "manual_cross_value": "5"}})
        report = build_report(_recipe(build_type="Rear"), metadata)
        assert report.rear.error_kind is ErrorKind.INFEASIBLE_LACING
        assert "112.5" in report.rear.error

    @pytest.mark.parametrize(
        "overrides",
        [
            {"rim-v": {"erd": "1e200"}},
            {"hub-v": {"flange_offset_left": "1e200"}},
        ],
    )
    def test_out_of_range_dimension_is_tagged_failure(self, overrides):
        report = build_report(_recipe(build_type="Rear"), _metadata(**overrides))
        assert not report.rear.calculation_successful
        assert report.rear.error_kind is ErrorKind.MISSING_PARAMETER
        assert "out of range" in report.rear.error
        assert report.errors == [f"Rear wheel: {report.rear.error}"]

    def test_hook_flange_vendor_rejected_when_configured(self):
        config = EngineConfig(unsupported_hook_flange_vendors=frozenset({SpokeVendorClass.ELASTOMER_CORED}))
        metadata = _metadata(**{"hub-v": {"hub_type": "Hook Flange"}})
        report = build_report(_recipe(build_type="Rear", spoke_vendor="Berd"), metadata, config=config)
        assert report.rear.error_kind is ErrorKind.UNSUPPORTED_CONFIGURATION
        # Steel spokes on the same hub are still fine
        report = build_report(_recipe(build_type="Rear"), metadata, config=config)
        assert report.rear.calculation_successful


# ---------------------------------------------------------------------------
# Metadata Fetching
# ---------------------------------------------------------------------------


class TestMetadataFetching:
    def test_each_component_fetched_once_per_build(self):
        metadata = _metadata()
        calls: Counter[str] = Counter()

        def fetch(component_id: str):
            calls[component_id] += 1
            return metadata.get(component_id)

        report = build_report(_recipe(), fetch=fetch)
        assert report.successful
        assert calls
        assert all(count == 1 for count in calls.values())

    def test_calculate_wheel_with_shared_resolver(self):
        resolver = MetadataResolver(_metadata())
        result = calculate_wheel(WheelPosition.REAR, _recipe(), resolver)
        assert result.calculation_successful
        assert result.position is WheelPosition.REAR
