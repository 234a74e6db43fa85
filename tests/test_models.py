"""
Tests for the adjustment record, masks and geometry.
"""

import json

import pytest

from filmrecipe.models import (
    AdjustmentRecord, CurvePoint, LinearGeometry, LocalAdjustments, Mask,
    RadialGeometry, RangeGeometry, ReferencePointGeometry, Treatment,
    build_geometry, is_monochrome,
)


class TestAdjustmentRecord:
    """Construction and serialization of records."""

    def test_absent_fields_are_none(self):
        record = AdjustmentRecord()
        assert record.exposure is None
        assert record.tone_curve == []
        assert record.masks == []
        assert record.to_dict() == {}

    def test_from_dict_ignores_unknown_and_invalid(self):
        record = AdjustmentRecord.from_dict({
            'exposure': 'not a number',
            'contrast': '25',
            'bogus_field': 12,
            'highlights': float('nan'),
            'preset_name': 42,
        })
        assert record.exposure is None
        assert record.contrast == 25.0
        assert record.highlights is None
        assert record.preset_name is None

    def test_from_dict_accepts_camel_case(self):
        record = AdjustmentRecord.from_dict({
            'presetName': 'Camel',
            'colorGradeShadowHue': 210,
            'toneCurveRed': [[0, 10], [255, 245]],
            'grainAmount': 15,
        })
        assert record.preset_name == 'Camel'
        assert record.color_grade_shadow_hue == 210
        assert record.tone_curve_red == [CurvePoint(0, 10), CurvePoint(255, 245)]
        assert record.grain_amount == 15

    def test_snake_case_key_wins_over_camel_case(self):
        record = AdjustmentRecord.from_dict({'grain_amount': 20, 'grainAmount': 60})
        assert record.grain_amount == 20

    def test_curves_are_normalized(self):
        record = AdjustmentRecord.from_dict({
            'tone_curve': [[0, 0], {'input': 127.5, 'output': 300}, 'junk', [255]],
        })
        assert record.tone_curve == [CurvePoint(0, 0), CurvePoint(128, 255)]

    def test_treatment_parsing(self):
        assert AdjustmentRecord.from_dict({'treatment': 'Black & White'}).treatment \
            == Treatment.MONOCHROME
        assert AdjustmentRecord.from_dict({'treatment': 'color'}).treatment == Treatment.COLOR
        assert AdjustmentRecord.from_dict({'treatment': 'sepia'}).treatment is None

    def test_json_round_trip(self, color_record):
        restored = AdjustmentRecord.from_json(color_record.to_json())
        assert restored == color_record

    def test_to_dict_is_plain_data(self, masked_record):
        data = masked_record.to_dict()
        # Must be serializable without custom encoders
        json.dumps(data)
        assert data['masks'][0]['type'] == 'face_skin'
        assert data['masks'][0]['adjustments'] == {'local_exposure': 0.5, 'local_shadows': 40}

    def test_validate_reports_out_of_range(self):
        record = AdjustmentRecord.from_dict({
            'exposure': 7,
            'contrast': 50,
            'point_colors': [[1], [2], [3], [4], [5]],
            'masks': [{'type': 'sky', 'adjustments': {'contrast': 150}}],
        })
        warnings = record.validate()
        assert any(w.startswith('exposure=7') for w in warnings)
        assert not any(w.startswith('contrast=') for w in warnings)
        assert any('point colors' in w for w in warnings)
        assert any(w.startswith('masks[0].local_contrast') for w in warnings)

    def test_validate_clean_record(self, color_record):
        assert color_record.validate() == []


class TestMonochrome:
    """The single black-and-white predicate."""

    def test_color_record(self, color_record):
        assert not is_monochrome(color_record)

    def test_treatment(self, monochrome_record):
        assert is_monochrome(monochrome_record)

    def test_flag(self):
        assert is_monochrome(AdjustmentRecord(monochrome=True))

    def test_saturation_fully_removed(self):
        assert is_monochrome(AdjustmentRecord(saturation=-100))
        assert not is_monochrome(AdjustmentRecord(saturation=-99))

    def test_profile_hint(self):
        assert is_monochrome(AdjustmentRecord(camera_profile='Adobe Monochrome'))


class TestMask:
    """Masks and the geometry tagged union."""

    def test_type_is_normalized(self):
        assert Mask(type='Face').type == 'face_skin'
        assert Mask(type='spaceship').type == 'subject'

    def test_default_geometry_follows_archetype(self):
        assert isinstance(Mask(type='radial').geometry, RadialGeometry)
        assert isinstance(Mask(type='linear').geometry, LinearGeometry)
        assert isinstance(Mask(type='sky').geometry, ReferencePointGeometry)
        assert isinstance(Mask(type='range_color').geometry, RangeGeometry)

    def test_mismatched_geometry_rejected(self):
        with pytest.raises(ValueError):
            Mask(type='radial', geometry=LinearGeometry())

    def test_flat_keys_override_nested_geometry(self):
        mask = Mask.from_dict({
            'type': 'radial',
            'geometry': {'top': 0.1, 'left': 0.1},
            'top': 0.3,
        })
        assert mask.geometry.top == 0.3
        assert mask.geometry.left == 0.1
        assert mask.geometry.feather == 75

    def test_camel_case_keys(self):
        mask = Mask.from_dict({'type': 'person', 'subCategoryId': '7', 'referenceX': 0.25})
        assert mask.sub_category_id == 7
        assert mask.geometry.reference_x == 0.25
        assert mask.geometry.reference_y == 0.5

    def test_range_kind(self):
        assert build_geometry('range_luminance').kind == 'luminance'
        assert build_geometry('range_color', {'kind': 'luminance'}).kind == 'color'

    def test_malformed_geometry_values_use_defaults(self):
        geometry = build_geometry('range_luminance', {'lum_range': [0.1, 0.2], 'invert': 'yes'})
        assert geometry.lum_range == (0.0, 1.0, 1.0, 1.0)
        assert geometry.invert is True

    def test_round_trip(self, masked_record):
        for mask in masked_record.masks:
            assert Mask.from_dict(mask.to_dict()) == mask


class TestLocalAdjustments:
    """Local adjustment keys with and without the local_ prefix."""

    def test_prefix_optional(self):
        local = LocalAdjustments.from_dict({'exposure': 1, 'local_contrast': 10, 'sharpness': 5})
        assert local.to_dict() == {'local_exposure': 1, 'local_contrast': 10}

    def test_empty(self):
        assert LocalAdjustments.from_dict(None).is_empty()
