"""
Tests for mask identifiers and override operations.
"""

from filmrecipe.masks.overrides import apply_mask_overrides, find_mask_index, mask_identifier
from filmrecipe.models import Mask


class TestMaskIdentifier:
    """Stable identifiers."""

    def test_explicit_id(self):
        assert mask_identifier({'id': 'abc', 'name': 'Sky'}) == 'abc'

    def test_name(self):
        assert mask_identifier(Mask(type='sky', name='Sky')) == 'name:Sky'

    def test_type_and_reference_point(self):
        identifier = mask_identifier({'type': 'person', 'subCategoryId': 2,
                                      'referenceX': 0.123456, 'referenceY': 0.5})
        assert identifier == 'person:2:0.12:0.5'

    def test_undefined(self):
        assert mask_identifier(None) == 'mask:undefined'


class TestFindMaskIndex:
    """Strict then flexible matching."""

    def test_flexible_type_match(self):
        masks = [Mask(type='sky', name='Sky'), Mask(type='face_skin', name='Face')]
        assert find_mask_index(masks, {'type': 'face'}) == 1
        assert find_mask_index(masks, {'type': 'face'}, flexible=False) == -1

    def test_missing(self):
        assert find_mask_index([Mask(type='sky')], {'type': 'water'}) == -1


class TestApplyOverrides:
    """add, update, remove and clear."""

    def test_add_appends(self):
        result = apply_mask_overrides([], [{'type': 'sky', 'adjustments': {'exposure': -0.3}}])
        assert len(result) == 1
        assert result[0].type == 'sky'
        assert result[0].id == 'sky:::'
        assert result[0].adjustments.local_exposure == -0.3

    def test_update_merges_adjustments(self):
        masks = [Mask.from_dict({'type': 'sky', 'name': 'Sky',
                                 'adjustments': {'exposure': -0.3, 'saturation': 10}})]
        result = apply_mask_overrides(masks, [
            {'op': 'update', 'name': 'Sky', 'adjustments': {'local_saturation': 25}},
        ])
        assert len(result) == 1
        assert result[0].adjustments.local_exposure == -0.3
        assert result[0].adjustments.local_saturation == 25
        # Input list untouched
        assert masks[0].adjustments.local_saturation == 10

    def test_remove(self):
        masks = [Mask(type='sky', name='Sky'), Mask(type='water', name='Water')]
        result = apply_mask_overrides(masks, [{'op': 'remove', 'name': 'Sky'}])
        assert [m.type for m in result] == ['water']

    def test_remove_missing_is_noop(self):
        masks = [Mask(type='sky')]
        assert apply_mask_overrides(masks, [{'op': 'remove', 'type': 'water'}]) == masks

    def test_clear(self):
        masks = [Mask(type='sky'), Mask(type='water')]
        assert apply_mask_overrides(masks, [{'op': 'clear'}]) == []
        assert apply_mask_overrides(masks, [{'op': 'remove_all'}]) == []

    def test_unknown_operation_treated_as_add(self):
        result = apply_mask_overrides([], [{'op': 'explode', 'type': 'radial'}])
        assert len(result) == 1
        assert result[0].type == 'radial'

    def test_no_operations(self):
        masks = [Mask(type='sky')]
        assert apply_mask_overrides(masks, None) == masks
        assert apply_mask_overrides(None, None) == []
