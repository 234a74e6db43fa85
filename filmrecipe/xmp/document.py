"""
Structured XMP document support.

Encoders describe a document as attributes, language alternatives,
sequences and nested descriptions on an ElementTree; serialization happens
once at the end.  The reader side walks the same structure by
namespace-qualified name, so attribute order and whitespace never matter.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
import xml.etree.ElementTree as ET
from xml.dom import minidom

logger = logging.getLogger(__name__)

# XMP namespaces
XMP_NAMESPACES = {
    'x': 'adobe:ns:meta/',
    'rdf': 'http://www.w3.org/1999/02/22-rdf-syntax-ns#',
    'crs': 'http://ns.adobe.com/camera-raw-settings/1.0/',
}

X = '{adobe:ns:meta/}'
RDF = '{http://www.w3.org/1999/02/22-rdf-syntax-ns#}'
CRS = '{http://ns.adobe.com/camera-raw-settings/1.0/}'
XML_LANG = '{http://www.w3.org/XML/1998/namespace}lang'

XPACKET_HEADER = '<?xpacket begin="\ufeff" id="W5M0MpCehiHzreSzNTczkc9d"?>\n'
XPACKET_FOOTER = '\n<?xpacket end="w"?>'

_XML_DECL_RE = re.compile(r'<\?xml[^>]*\?>')

for _prefix, _uri in XMP_NAMESPACES.items():
    ET.register_namespace(_prefix, _uri)

XMPValue = Union[str, int, float, bool]


def format_value(value: XMPValue) -> str:
    """Text form of a scalar as Camera Raw writes it."""
    if isinstance(value, bool):
        return 'True' if value else 'False'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_empty(value: Any) -> bool:
    return value is None or value == ''


class XMPDescription:
    """Wrapper around an ``rdf:Description`` that filters empty values."""

    def __init__(self, element: ET.Element):
        self.element = element

    def set(self, name: str, value: Optional[XMPValue]) -> 'XMPDescription':
        """Set ``crs:<name>``; absent values are skipped."""
        if not is_empty(value):
            self.element.set(CRS + name, format_value(value))
        return self

    def set_many(self, pairs: Iterable[Tuple[str, Optional[XMPValue]]]) -> 'XMPDescription':
        for name, value in pairs:
            self.set(name, value)
        return self

    def add_alt(self, name: str, text: Optional[str]) -> 'XMPDescription':
        """``crs:<name>/rdf:Alt/rdf:li[xml:lang=x-default]``."""
        if is_empty(text):
            return self
        container = ET.SubElement(self.element, CRS + name)
        alt = ET.SubElement(container, RDF + 'Alt')
        li = ET.SubElement(alt, RDF + 'li')
        li.set(XML_LANG, 'x-default')
        li.text = str(text)
        return self

    def add_seq(self, name: str, items: List[str]) -> 'XMPDescription':
        """``crs:<name>/rdf:Seq/rdf:li`` per item; nothing for an empty list."""
        if not items:
            return self
        container = ET.SubElement(self.element, CRS + name)
        seq = ET.SubElement(container, RDF + 'Seq')
        for item in items:
            li = ET.SubElement(seq, RDF + 'li')
            li.text = item
        return self

    def add_nested(self, name: str) -> 'XMPDescription':
        """``crs:<name>/rdf:Description`` for a single structured value."""
        container = ET.SubElement(self.element, CRS + name)
        return XMPDescription(ET.SubElement(container, RDF + 'Description'))

    def add_description_seq(self, name: str) -> 'DescriptionSeq':
        """``crs:<name>/rdf:Seq`` whose items are descriptions."""
        container = ET.SubElement(self.element, CRS + name)
        return DescriptionSeq(ET.SubElement(container, RDF + 'Seq'))


class DescriptionSeq:
    """An ``rdf:Seq`` of ``rdf:li/rdf:Description`` items."""

    def __init__(self, element: ET.Element):
        self.element = element

    def append(self) -> XMPDescription:
        li = ET.SubElement(self.element, RDF + 'li')
        return XMPDescription(ET.SubElement(li, RDF + 'Description'))


class XMPDocument:
    """Root ``x:xmpmeta/rdf:RDF/rdf:Description`` document."""

    def __init__(self):
        self.root = ET.Element(X + 'xmpmeta')
        rdf_root = ET.SubElement(self.root, RDF + 'RDF')
        element = ET.SubElement(rdf_root, RDF + 'Description')
        element.set(RDF + 'about', '')
        self.description = XMPDescription(element)

    def to_string(self) -> str:
        return prettify_xml(self.root)


def prettify_xml(elem: ET.Element) -> str:
    """Return a pretty-printed XMP packet."""
    rough_string = ET.tostring(elem, encoding='unicode')
    reparsed = minidom.parseString(rough_string)

    pretty_xml = reparsed.toprettyxml(indent='  ')
    # The packet header already opens the document
    pretty_xml = _XML_DECL_RE.sub('', pretty_xml)
    lines = [line for line in pretty_xml.split('\n') if line.strip()]

    return XPACKET_HEADER + '\n'.join(lines) + XPACKET_FOOTER


def parse_xmp(text: str) -> ET.Element:
    """
    Parse XMP text into an element tree root.

    Raises:
        ET.ParseError: If the text is not well-formed XML
    """
    cleaned = _XML_DECL_RE.sub('', text.lstrip('\ufeff'))
    return ET.fromstring(cleaned.strip())


def local_name(tag: str) -> str:
    return tag.split('}', 1)[1] if tag.startswith('{') else tag


def find_settings_description(root: ET.Element) -> Optional[ET.Element]:
    """First ``rdf:Description`` carrying camera-raw settings."""
    candidates = [root] if root.tag == RDF + 'Description' else []
    candidates.extend(root.iter(RDF + 'Description'))
    for element in candidates:
        if any(k.startswith(CRS) for k in element.attrib):
            return element
        if any(isinstance(c.tag, str) and c.tag.startswith(CRS) for c in element):
            return element
    return None


def read_crs_fields(description: ET.Element) -> Dict[str, Union[str, ET.Element]]:
    """
    Collect ``crs:`` values from a description.

    Attributes and simple child elements both yield strings; structured
    children (Alt, Seq, nested Description) are returned as elements.
    """
    values: Dict[str, Union[str, ET.Element]] = {}
    for key, value in description.attrib.items():
        if key.startswith(CRS):
            values[local_name(key)] = value
    for child in description:
        if not isinstance(child.tag, str) or not child.tag.startswith(CRS):
            continue
        name = local_name(child.tag)
        if len(child):
            values[name] = child
        else:
            values[name] = (child.text or '').strip()
    return values


def alt_text(value: Union[str, ET.Element, None]) -> Optional[str]:
    """Default-language text of an ``rdf:Alt`` (or a plain string)."""
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    items = list(value.iter(RDF + 'li'))
    for li in items:
        if li.get(XML_LANG) == 'x-default' and li.text:
            return li.text
    for li in items:
        if li.text:
            return li.text
    return None


def seq_items(value: Union[str, ET.Element, None]) -> List[str]:
    """Item texts of an ``rdf:Seq``."""
    if value is None or isinstance(value, str):
        return []
    return [(li.text or '').strip() for li in value.iter(RDF + 'li')]


def seq_descriptions(value: Union[str, ET.Element, None]) -> List[ET.Element]:
    """Descriptions held by the top-level items of an ``rdf:Seq``."""
    if value is None or isinstance(value, str):
        return []
    seq = value.find(RDF + 'Seq')
    if seq is None:
        return []
    result = []
    for li in seq.findall(RDF + 'li'):
        nested = li.find(RDF + 'Description')
        # rdf:parseType="Resource" style items carry attributes on the li itself
        result.append(nested if nested is not None else li)
    return result


def nested_description(value: Union[str, ET.Element, None]) -> Optional[ET.Element]:
    """The description inside a structured property, or the property itself."""
    if value is None or isinstance(value, str):
        return None
    nested = value.find(RDF + 'Description')
    return nested if nested is not None else value
