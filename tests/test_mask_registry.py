"""
Tests for the mask taxonomy registry.
"""

import pytest

from filmrecipe.masks import (
    REGISTRY, CaptureOneMaskType, GeometryArchetype, MaskCategory, MaskCodes,
    MaskRegistry, MaskTypeConfig, get_all_mask_types, get_mask_config,
    get_mask_type_from_codes, normalize_mask_type,
)


class TestNormalization:
    """Loose names to canonical types."""

    @pytest.mark.parametrize('raw,expected', [
        ('face', 'face_skin'),
        ('FACE', 'face_skin'),
        (' Sky ', 'sky'),
        ('eye-white', 'eye_whites'),
        ('Facial Hair', 'facial_hair'),
        ('gradient', 'linear'),
        ('luminosity', 'range_luminance'),
    ])
    def test_synonyms(self, raw, expected):
        assert normalize_mask_type(raw) == expected

    @pytest.mark.parametrize('raw', ['spaceship', '', None, 42])
    def test_unknown_falls_back_to_subject(self, raw):
        assert normalize_mask_type(raw) == 'subject'


class TestLookups:
    """Forward and reverse code lookups."""

    def test_face_round_trip(self):
        mask_type = normalize_mask_type('face')
        codes = REGISTRY.codes_for(mask_type)
        assert codes == MaskCodes('3', '2')
        assert get_mask_type_from_codes(codes.type_code, codes.subtype_code) == 'face_skin'

    def test_every_reversible_type_round_trips(self):
        for mask_type in get_all_mask_types():
            config = get_mask_config(mask_type)
            if not config.reversible:
                continue
            codes = config.codes
            assert REGISTRY.type_for_codes(codes.type_code, codes.subtype_code) == mask_type

    def test_shared_codes_resolve_to_subject(self):
        assert REGISTRY.codes_for('person') == REGISTRY.codes_for('subject')
        assert get_mask_type_from_codes('1', '0') == 'subject'
        assert get_mask_type_from_codes('1', None) == 'subject'

    def test_unknown_codes(self):
        assert get_mask_type_from_codes('99', '99') == 'subject'
        assert get_mask_type_from_codes(None) == 'subject'

    def test_numeric_codes_accepted(self):
        assert get_mask_type_from_codes(0, 50006) == 'sky'

    def test_archetypes(self):
        assert REGISTRY.archetype_for('radial') == GeometryArchetype.RADIAL
        assert REGISTRY.archetype_for('linear') == GeometryArchetype.LINEAR
        assert REGISTRY.archetype_for('water') == GeometryArchetype.REFERENCE_POINT
        assert REGISTRY.archetype_for('range_color') == GeometryArchetype.RANGE

    def test_capture_one_codes(self):
        assert REGISTRY.capture_one_codes('lips') == (CaptureOneMaskType.SUBJECT, 'Lips')
        assert REGISTRY.capture_one_codes('background') == (CaptureOneMaskType.BACKGROUND, None)
        assert REGISTRY.capture_one_codes('linear') == (CaptureOneMaskType.GRADIENT, None)

    def test_categories(self):
        face_types = {c.type for c in REGISTRY.by_category(MaskCategory.FACE)}
        assert {'face_skin', 'hair', 'lips'} <= face_types
        assert 'sky' not in face_types

    def test_display_name(self):
        assert REGISTRY.display_name('iris_pupil') == 'Eye Pop'
        assert REGISTRY.display_name('nonsense', 2) == 'Mask 3'


class TestRegistryConstruction:
    """Registry integrity checks."""

    def test_duplicate_type_rejected(self):
        config = get_mask_config('sky')
        with pytest.raises(ValueError):
            MaskRegistry(configs=(config, config))

    def test_duplicate_codes_rejected(self):
        sky = get_mask_config('sky')
        clone = MaskTypeConfig('sky_copy', sky.codes, sky.archetype, sky.category,
                               'Copy', 'Copy')
        with pytest.raises(ValueError):
            MaskRegistry(configs=(sky, clone))
