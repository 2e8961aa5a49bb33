"""
Default XML templates for parts a document may lack.

Each factory returns a freshly parsed element, so callers can insert the
result into a document without copying it. Only $-tokens such as $rsid and
$nsid are substituted; everything else is returned verbatim.

Example:
    >>> styles_root = default_styles_template()
    >>> abstract = default_numbering_template(ListKind.BULLETED)
    >>> settings_root = default_settings_template(generate_hex_id())
"""

import random
from string import Template

from lxml import etree

from .constants import NSMAP_FULL, WORD_NAMESPACE
from .models.numbering import ListKind

_W = f'xmlns:w="{WORD_NAMESPACE}"'

_STYLES = Template(
    f"""<w:styles {_W}>
  <w:docDefaults>
    <w:rPrDefault>
      <w:rPr>
        <w:rFonts w:asciiTheme="minorHAnsi" w:eastAsiaTheme="minorHAnsi" w:hAnsiTheme="minorHAnsi" w:cstheme="minorBidi"/>
        <w:sz w:val="22"/>
        <w:szCs w:val="22"/>
        <w:lang w:val="en-US" w:eastAsia="en-US" w:bidi="ar-SA"/>
      </w:rPr>
    </w:rPrDefault>
    <w:pPrDefault>
      <w:pPr>
        <w:spacing w:after="160" w:line="259" w:lineRule="auto"/>
      </w:pPr>
    </w:pPrDefault>
  </w:docDefaults>
  <w:style w:type="paragraph" w:default="1" w:styleId="Normal">
    <w:name w:val="Normal"/>
    <w:qFormat/>
  </w:style>
  <w:style w:type="character" w:default="1" w:styleId="DefaultParagraphFont">
    <w:name w:val="Default Paragraph Font"/>
    <w:uiPriority w:val="1"/>
    <w:semiHidden/>
    <w:unhideWhenUsed/>
  </w:style>
  <w:style w:type="table" w:default="1" w:styleId="TableNormal">
    <w:name w:val="Normal Table"/>
    <w:uiPriority w:val="99"/>
    <w:semiHidden/>
    <w:unhideWhenUsed/>
    <w:tblPr>
      <w:tblInd w:w="0" w:type="dxa"/>
      <w:tblCellMar>
        <w:top w:w="0" w:type="dxa"/>
        <w:left w:w="108" w:type="dxa"/>
        <w:bottom w:w="0" w:type="dxa"/>
        <w:right w:w="108" w:type="dxa"/>
      </w:tblCellMar>
    </w:tblPr>
  </w:style>
  <w:style w:type="numbering" w:default="1" w:styleId="NoList">
    <w:name w:val="No List"/>
    <w:uiPriority w:val="99"/>
    <w:semiHidden/>
    <w:unhideWhenUsed/>
  </w:style>
</w:styles>"""
)

_NUMBERING = Template(f"<w:numbering {_W}/>")

# One w:lvl per list level; bullets cycle through three glyphs
_BULLET_GLYPHS = (("\uf0b7", "Symbol"), ("o", "Courier New"), ("\uf0a7", "Wingdings"))
_DECIMAL_FORMATS = ("decimal", "lowerLetter", "lowerRoman")

_LEVEL = Template(
    """<w:lvl w:ilvl="$level">
    <w:start w:val="1"/>
    <w:numFmt w:val="$format"/>
    <w:lvlText w:val="$text"/>
    <w:lvlJc w:val="left"/>
    <w:pPr>
      <w:ind w:left="$left" w:hanging="360"/>
    </w:pPr>$run
  </w:lvl>"""
)

_ABSTRACT_NUMBERING = Template(
    f"""<w:abstractNum {_W} w:abstractNumId="0">
  <w:nsid w:val="$nsid"/>
  <w:multiLevelType w:val="hybridMultilevel"/>
  $levels
</w:abstractNum>"""
)

_SETTINGS = Template(
    f"""<w:settings {_W}>
  <w:zoom w:percent="100"/>
  <w:defaultTabStop w:val="720"/>
  <w:characterSpacingControl w:val="doNotCompress"/>
  <w:compat>
    <w:compatSetting w:name="compatibilityMode" w:uri="http://schemas.microsoft.com/office/word" w:val="15"/>
  </w:compat>
  <w:rsids>
    <w:rsidRoot w:val="$rsid"/>
    <w:rsid w:val="$rsid"/>
  </w:rsids>
  <w:themeFontLang w:val="en-US"/>
  <w:decimalSymbol w:val="."/>
  <w:listSeparator w:val=","/>
</w:settings>"""
)

_LIST_PARAGRAPH_STYLE = Template(
    f"""<w:style {_W} w:type="paragraph" w:styleId="ListParagraph">
  <w:name w:val="List Paragraph"/>
  <w:basedOn w:val="Normal"/>
  <w:uiPriority w:val="34"/>
  <w:qFormat/>
  <w:rsid w:val="$rsid"/>
  <w:pPr>
    <w:ind w:left="720"/>
    <w:contextualSpacing/>
  </w:pPr>
</w:style>"""
)

_NOTES = Template(
    f"""<w:$tag {_W}>
  <w:$note w:type="separator" w:id="-1">
    <w:p>
      <w:pPr><w:spacing w:after="0" w:line="240" w:lineRule="auto"/></w:pPr>
      <w:r><w:separator/></w:r>
    </w:p>
  </w:$note>
  <w:$note w:type="continuationSeparator" w:id="0">
    <w:p>
      <w:pPr><w:spacing w:after="0" w:line="240" w:lineRule="auto"/></w:pPr>
      <w:r><w:continuationSeparator/></w:r>
    </w:p>
  </w:$note>
</w:$tag>"""
)


def generate_hex_id() -> str:
    """Generate a random 8-character hex id for rsid and nsid values.

    Returns:
        8-character hex string (e.g., "F3F4F4B4")
    """
    return "".join(random.choices("0123456789ABCDEF", k=8))


def _parse(template: Template, **tokens: str) -> etree._Element:
    parser = etree.XMLParser(remove_blank_text=True)
    return etree.fromstring(template.substitute(**tokens).encode("utf-8"), parser)


def _with_full_nsmap(root: etree._Element) -> etree._Element:
    """Re-create a part root so that w14 and r prefixes are declared on it."""
    nsmap = dict(NSMAP_FULL)
    nsmap.update(root.nsmap)
    new_root = etree.Element(root.tag, dict(root.attrib), nsmap=nsmap)
    new_root.extend(list(root))
    return new_root


def default_styles_template() -> etree._Element:
    """The w:styles root of a blank document."""
    return _with_full_nsmap(_parse(_STYLES))


def empty_numbering_template() -> etree._Element:
    """An empty w:numbering root."""
    return _with_full_nsmap(_parse(_NUMBERING))


def default_numbering_template(kind: ListKind) -> etree._Element:
    """A nine-level w:abstractNum for bulleted or decimal lists.

    The w:abstractNumId is 0; callers renumber it before insertion.

    Args:
        kind: Which list format to generate

    Returns:
        The w:abstractNum element with a fresh w:nsid
    """
    levels = []
    for level in range(9):
        if kind is ListKind.BULLETED:
            glyph, font = _BULLET_GLYPHS[level % len(_BULLET_GLYPHS)]
            number_format = "bullet"
            text = glyph
            run = (
                f'\n    <w:rPr><w:rFonts w:ascii="{font}" w:hAnsi="{font}" w:hint="default"/>'
                "</w:rPr>"
            )
        else:
            number_format = _DECIMAL_FORMATS[level % len(_DECIMAL_FORMATS)]
            text = f"%{level + 1}."
            run = ""
        levels.append(
            _LEVEL.substitute(
                level=level,
                format=number_format,
                text=text,
                left=720 * (level + 1),
                run=run,
            )
        )
    return _parse(_ABSTRACT_NUMBERING, nsid=generate_hex_id(), levels="\n  ".join(levels))


def default_settings_template(revision_seed: str) -> etree._Element:
    """The w:settings root of a blank document.

    Args:
        revision_seed: 8-character hex rsid recorded as the revision root
    """
    return _with_full_nsmap(_parse(_SETTINGS, rsid=revision_seed))


def list_paragraph_style(rsid: str) -> etree._Element:
    """The built-in "List Paragraph" style applied to list items."""
    return _parse(_LIST_PARAGRAPH_STYLE, rsid=rsid)


def default_footnotes_template() -> etree._Element:
    """A w:footnotes root holding only the two separator notes."""
    return _with_full_nsmap(_parse(_NOTES, tag="footnotes", note="footnote"))


def default_endnotes_template() -> etree._Element:
    """A w:endnotes root holding only the two separator notes."""
    return _with_full_nsmap(_parse(_NOTES, tag="endnotes", note="endnote"))
