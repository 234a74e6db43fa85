"""
Tests for the full Camera Raw preset encoder.
"""

import logging

from filmrecipe.models import AdjustmentRecord
from filmrecipe.xmp import PresetOptions, encode_preset, parse_preset
from filmrecipe.xmp.document import (
    find_settings_description, parse_xmp, read_crs_fields, alt_text, seq_items,
    seq_descriptions,
)


def settings(text):
    """crs fields of the settings description in an encoded preset."""
    return read_crs_fields(find_settings_description(parse_xmp(text)))


class TestPresetDocument:
    """Document framing and identity fields."""

    def test_xpacket_wrapper(self, color_record):
        text = encode_preset(color_record)
        assert text.startswith('<?xpacket begin=')
        assert text.rstrip().endswith('<?xpacket end="w"?>')
        assert '<?xml' not in text

    def test_identity_fields(self, color_record):
        fields = settings(encode_preset(color_record))
        assert fields['PresetType'] == 'Normal'
        assert fields['HasSettings'] == 'True'
        assert fields['Treatment'] == 'Color'
        assert alt_text(fields['Name']) == 'Golden Hour'
        assert alt_text(fields['Group']) == 'Film Recipe Wizard'
        assert alt_text(fields['Description']) == 'Warm late-afternoon look'

    def test_name_override_is_cleaned(self, color_record):
        fields = settings(encode_preset(color_record, PresetOptions(name='AI Match Sunset')))
        assert alt_text(fields['Name']) == 'Sunset'

    def test_group_from_config(self, color_record, config):
        config['export']['group_name'] = 'My Looks'
        fields = settings(encode_preset(color_record, config=config))
        assert alt_text(fields['Group']) == 'My Looks'


class TestPresetValues:
    """Scaled values and omission of absent fields."""

    def test_basic_tone(self, color_record):
        fields = settings(encode_preset(color_record))
        assert fields['Exposure2012'] == '0.35'
        assert fields['Contrast2012'] == '20'
        assert fields['Highlights2012'] == '-40'
        assert fields['Temperature'] == '6200'
        assert fields['Tint'] == '8'

    def test_absent_fields_omitted(self, color_record):
        fields = settings(encode_preset(color_record))
        assert 'Whites2012' not in fields
        assert 'HueAdjustmentRed' not in fields
        assert 'MaskGroupBasedCorrections' not in fields

    def test_exposure_clamped(self):
        fields = settings(encode_preset(AdjustmentRecord(exposure=999)))
        assert fields['Exposure2012'] == '5.00'

    def test_strength(self, color_record):
        fields = settings(encode_preset(color_record, PresetOptions(strength=0.5)))
        assert fields['Contrast2012'] == '10'
        # White balance and hue rotations ignore strength
        assert fields['Temperature'] == '6200'
        assert fields['ColorGradeShadowHue'] == '210'

    def test_hsl_and_grading(self, color_record):
        fields = settings(encode_preset(color_record))
        assert fields['HueAdjustmentOrange'] == '-5'
        assert fields['SaturationAdjustmentOrange'] == '12'
        assert fields['LuminanceAdjustmentBlue'] == '-20'
        assert fields['ColorGradeHighlightSat'] == '20'

    def test_include_flags(self, color_record):
        options = PresetOptions(hsl=False, curves=False, grain=False)
        fields = settings(encode_preset(color_record, options))
        assert not any(key.startswith('HueAdjustment') for key in fields)
        assert 'ToneCurvePV2012' not in fields
        assert 'GrainAmount' not in fields
        assert 'ColorGradeShadowHue' in fields

    def test_curve_sequence(self, color_record):
        fields = settings(encode_preset(color_record))
        assert seq_items(fields['ToneCurvePV2012']) == ['0, 10', '128, 135', '255, 245']
        assert 'ToneCurvePV2012Red' not in fields


class TestMonochromePreset:
    """Black and white rendering."""

    def test_no_hsl_and_grayscale_directive(self, monochrome_record):
        fields = settings(encode_preset(monochrome_record))
        assert fields['ConvertToGrayscale'] == 'True'
        assert fields['Treatment'] == 'Black & White'
        assert fields['Saturation'] == '0'
        assert not any(key.startswith(('HueAdjustment', 'SaturationAdjustment',
                                       'LuminanceAdjustment')) for key in fields)
        assert fields['GrayMixerRed'] == '20'
        assert fields['GrayMixerBlue'] == '-30'
        assert fields['ProfileName'] == 'Adobe Monochrome'

    def test_saturation_removed_means_monochrome(self):
        fields = settings(encode_preset(AdjustmentRecord(saturation=-100)))
        assert fields['ConvertToGrayscale'] == 'True'

    def test_color_record_has_no_grayscale_directive(self, color_record):
        assert 'ConvertToGrayscale' not in settings(encode_preset(color_record))


class TestPresetMasks:
    """Mask group based corrections."""

    def test_masks_capped(self, masked_record, caplog):
        with caplog.at_level(logging.WARNING):
            fields = settings(encode_preset(masked_record))
        corrections = seq_descriptions(fields['MaskGroupBasedCorrections'])
        assert len(corrections) == 3
        assert 'exporting the first 3' in caplog.text

    def test_cap_from_config(self, masked_record, config):
        config['export']['max_masks'] = 10
        fields = settings(encode_preset(masked_record, config=config))
        assert len(seq_descriptions(fields['MaskGroupBasedCorrections'])) == 4

    def test_ai_mask(self, masked_record):
        fields = settings(encode_preset(masked_record))
        correction = read_crs_fields(seq_descriptions(fields['MaskGroupBasedCorrections'])[0])
        assert correction['What'] == 'Correction'
        assert correction['CorrectionName'] == 'Face'
        # Mask strength 0.35
        assert correction['LocalExposure2012'] == '0.175'
        assert correction['LocalShadows2012'] == '0.140'
        assert 'LocalContrast2012' not in correction

        mask = read_crs_fields(seq_descriptions(correction['CorrectionMasks'])[0])
        assert mask['What'] == 'Mask/Image'
        assert mask['MaskSubType'] == '3'
        assert mask['MaskSubCategoryID'] == '2'
        assert mask['ReferencePoint'] == '0.450 0.300'

    def test_geometric_masks(self, masked_record):
        fields = settings(encode_preset(masked_record))
        corrections = seq_descriptions(fields['MaskGroupBasedCorrections'])
        radial = read_crs_fields(seq_descriptions(read_crs_fields(corrections[1])['CorrectionMasks'])[0])
        linear = read_crs_fields(seq_descriptions(read_crs_fields(corrections[2])['CorrectionMasks'])[0])
        assert radial['What'] == 'Mask/CircularGradient'
        assert radial['Top'] == '0.100'
        assert radial['Feather'] == '60'
        assert linear['What'] == 'Mask/Gradient'
        assert linear['FullY'] == '0.400'

    def test_mask_strength_option(self, masked_record):
        fields = settings(encode_preset(masked_record, PresetOptions(mask_strength=1.0)))
        correction = read_crs_fields(seq_descriptions(fields['MaskGroupBasedCorrections'])[0])
        assert correction['LocalExposure2012'] == '0.500'

    def test_portrait_profile_for_face_masks(self, masked_record):
        assert settings(encode_preset(masked_record))['ProfileName'] == 'Adobe Portrait'

    def test_masks_can_be_excluded(self, masked_record):
        fields = settings(encode_preset(masked_record, PresetOptions(masks=False)))
        assert 'MaskGroupBasedCorrections' not in fields


class TestEmptyRecord:
    """A record with nothing set still encodes."""

    FRAMING = {
        'Version', 'ProcessVersion', 'PresetType', 'PresetSubtype', 'UUID', 'Cluster',
        'ProfileName', 'HasSettings', 'SupportsAmount', 'SupportsAmount2', 'SupportsColor',
        'SupportsMonochrome', 'Treatment', 'Name', 'ShortName', 'Group',
    }

    def test_only_framing_fields(self):
        fields = settings(encode_preset(AdjustmentRecord()))
        assert set(fields) <= self.FRAMING
        assert fields['PresetType'] == 'Normal'
        assert fields['Treatment'] == 'Color'
        assert alt_text(fields['Name']).startswith('Preset-')
        assert 'MaskGroupBasedCorrections' not in fields

    def test_decodes_to_empty_grade(self):
        result = parse_preset(encode_preset(AdjustmentRecord()))
        assert result.success, result.error
        assert set(result.record.to_dict()) <= {'treatment', 'camera_profile', 'preset_name'}
        assert result.record.exposure is None
        assert result.record.masks == []
