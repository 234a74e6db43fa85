"""
Tests for the minimal look encoder and camera profile selection.
"""

import pytest

from filmrecipe.models import AdjustmentRecord
from filmrecipe.xmp import (
    auto_select_camera_profile, encode_profile, normalize_camera_profile, parse_preset,
)
from filmrecipe.xmp.document import find_settings_description, parse_xmp, read_crs_fields, alt_text


def settings(text):
    return read_crs_fields(find_settings_description(parse_xmp(text)))


class TestCameraProfile:
    """Profile hint normalization and automatic choice."""

    @pytest.mark.parametrize('hint,expected', [
        ('monochrome', 'Adobe Monochrome'),
        ('Black & White', 'Adobe Monochrome'),
        ('portrait skin', 'Adobe Portrait'),
        ('Landscape', 'Adobe Landscape'),
        ('vivid', 'Adobe Color'),
    ])
    def test_normalize(self, hint, expected):
        assert normalize_camera_profile(hint) == expected

    def test_empty_hint(self):
        assert normalize_camera_profile('  ') is None
        assert normalize_camera_profile(None) is None

    def test_auto_select(self, color_record, monochrome_record):
        assert auto_select_camera_profile(color_record) == 'Adobe Color'
        assert auto_select_camera_profile(monochrome_record) == 'Adobe Monochrome'
        sky = AdjustmentRecord.from_dict({'masks': [{'type': 'sky'}]})
        assert auto_select_camera_profile(sky) == 'Adobe Landscape'


class TestEncodeProfile:
    """Look documents."""

    def test_look_fields(self, color_record):
        fields = settings(encode_profile(color_record))
        assert fields['PresetType'] == 'Look'
        assert fields['ProfileName'] == 'Adobe Color'
        assert alt_text(fields['Name']) == 'Golden Hour'
        assert 'HueAdjustmentOrange' not in fields
        assert 'ToneCurvePV2012' not in fields

    def test_half_strength_by_default(self, color_record):
        fields = settings(encode_profile(color_record))
        assert fields['Contrast2012'] == '10'
        assert fields['Highlights2012'] == '-20'
        # White balance is not strength-scaled
        assert fields['Temperature'] == '6200'

    def test_explicit_strength_and_name(self, color_record):
        fields = settings(encode_profile(color_record, name='Dusk', strength=1.0))
        assert fields['Contrast2012'] == '20'
        assert alt_text(fields['Name']) == 'Dusk'

    def test_monochrome_look(self, monochrome_record):
        fields = settings(encode_profile(monochrome_record))
        assert fields['Treatment'] == 'Black & White'
        assert fields['ConvertToGrayscale'] == 'True'
        assert fields['Saturation'] == '0'


class TestEmptyProfile:
    """A record with nothing set still yields a look."""

    FRAMING = {
        'PresetType', 'UUID', 'SupportsAmount', 'SupportsColor', 'SupportsMonochrome',
        'Cluster', 'ProfileName', 'Treatment', 'Name', 'ShortName', 'Group',
    }

    def test_only_framing_fields(self):
        fields = settings(encode_profile(AdjustmentRecord()))
        assert set(fields) <= self.FRAMING
        assert fields['PresetType'] == 'Look'
        assert fields['Treatment'] == 'Color'
        assert fields['ProfileName'] == 'Adobe Color'

    def test_decodes_as_look(self):
        result = parse_preset(encode_profile(AdjustmentRecord()))
        assert result.success, result.error
        assert result.metadata['is_look']
        assert set(result.record.to_dict()) <= {'treatment', 'camera_profile', 'preset_name'}
