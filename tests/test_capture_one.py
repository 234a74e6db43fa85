"""
Tests for the Capture One style encoder.
"""

import xml.etree.ElementTree as ET

from filmrecipe.models import AdjustmentRecord
from filmrecipe.styles import StyleOptions, encode_basic_style, encode_style
from filmrecipe.styles.capture_one import format_number


def parse_style(text):
    """(entries, LDS element) of a style document."""
    # Two top-level elements; wrap them to parse
    body = text.replace('<?xml version="1.0"?>', '')
    root = ET.fromstring(f'<doc>{body}</doc>')
    style = root.find('SL')
    entries = {e.get('K'): e.get('V') for e in style.findall('E')}
    return style, entries, root.find('LDS')


class TestStyleDocument:
    """Layout of the style document."""

    def test_header_and_blocks(self, color_record):
        text = encode_style(color_record)
        assert text.startswith('<?xml version="1.0"?>\n<SL Engine="1300">')
        assert '<LDS>' in text

    def test_entries_sorted(self, color_record):
        style, _, _ = parse_style(encode_style(color_record))
        keys = [e.get('K') for e in style.findall('E')]
        assert keys == sorted(keys, key=str.lower)

    def test_basic_entries(self, color_record):
        _, entries, _ = parse_style(encode_style(color_record))
        assert entries['Name'] == 'Golden Hour'
        assert entries['Exposure'] == '0.350000'
        assert entries['Contrast'] == '20'
        assert entries['ShadowRecovery'] == '30'
        assert entries['HighlightRecoveryEx'] == '40'
        assert entries['ColorBalance'] == '1;1;1'
        assert 'Brightness' not in entries

    def test_exposure_defaults_to_zero(self):
        _, entries, _ = parse_style(encode_style(AdjustmentRecord()))
        assert entries['Exposure'] == '0'

    def test_hsl_and_grading(self, color_record):
        _, entries, _ = parse_style(encode_style(color_record))
        assert entries['ColorEditorOrangeHue'] == '-5'
        assert entries['ColorEditorOrangeSaturation'] == '12'
        assert 'ColorBalanceShadow' in entries
        assert 'ColorBalanceMidtone' not in entries
        assert entries['FilmGrainAmount'] == '25'

    def test_curve(self, color_record):
        _, entries, _ = parse_style(encode_style(color_record))
        first = entries['GradationCurve'].split(';')[0]
        assert first == '0,0.039216'

    def test_monochrome(self, monochrome_record):
        _, entries, _ = parse_style(encode_style(monochrome_record))
        assert entries['Saturation'] == '-100'
        assert entries['BwEnabled'] == '1'
        assert not any(key.startswith('ColorEditor') for key in entries)

    def test_strength(self, color_record):
        _, entries, _ = parse_style(encode_style(color_record, StyleOptions(strength=0.5)))
        assert entries['Contrast'] == '10'


class TestStyleMasks:
    """Local adjustment layers."""

    def test_layers(self, masked_record):
        _, _, lds = parse_style(encode_style(masked_record))
        layers = lds.findall('LD')
        assert len(layers) == 3

        face = layers[0]
        adjustments = {e.get('K'): e.get('V') for e in face.find('LA').findall('E')}
        assert adjustments['Name'] == 'Face'
        # Mask strength 0.35: 0.5 stops -> 0.18, shadows 40 -> 14
        assert adjustments['Exposure'] == '0.180000'
        assert adjustments['ShadowRecovery'] == '14'

        metadata = face.find('MD')
        assert metadata.find('E').get('V') == '4'
        parts = {e.get('K'): e.get('V') for e in metadata.find('SO').findall('E')}
        assert parts['Face'] == '1'
        assert parts['Hair'] == '0'

    def test_geometric_layer_types(self, masked_record):
        _, _, lds = parse_style(encode_style(masked_record))
        types = [ld.find('MD').find('E').get('V') for ld in lds.findall('LD')]
        assert types == ['4', '2', '1']
        assert lds.findall('LD')[1].find('MD').find('SO') is None


class TestBasicStyle:
    """Tone-only variant."""

    def test_basic_style(self, masked_record, color_record):
        _, entries, lds = parse_style(encode_basic_style(color_record))
        assert 'ColorEditorOrangeHue' not in entries
        assert 'FilmGrainAmount' not in entries
        assert 'GradationCurve' not in entries
        assert entries['Contrast'] == '20'
        assert len(lds) == 0

        _, _, lds = parse_style(encode_basic_style(masked_record))
        assert len(lds) == 0

    def test_name_override(self, color_record):
        _, entries, _ = parse_style(encode_basic_style(color_record, name='Evening'))
        assert entries['Name'] == 'Evening'


class TestFormatNumber:
    """Numeric text in style entries."""

    def test_integers_bare(self):
        assert format_number(3.0) == '3'
        assert format_number(-0.00001) == '0'

    def test_fractions(self):
        assert format_number(0.25) == '0.250000'


class TestEmptyRecord:
    """Styles for a record with nothing set."""

    def test_basic_style_has_only_identity_entries(self):
        text = encode_basic_style(AdjustmentRecord())
        style, entries, lds = parse_style(text)
        assert style.get('Engine') == '1300'
        assert set(entries) == {'Name', 'UUID', 'Exposure', 'ColorBalance'}
        assert entries['Name'] == 'Custom Recipe'
        assert entries['Exposure'] == '0'
        assert lds is not None and len(lds) == 0

    def test_full_style_adds_no_grade_entries(self):
        _, entries, lds = parse_style(encode_style(AdjustmentRecord()))
        grade = set(entries) - {'Name', 'UUID', 'Exposure', 'ColorBalance'}
        assert all(key.startswith('Retouching') for key in grade)
        assert len(lds) == 0
