"""
OOXMLPackage class for managing the ZIP structure of a Word document.

This module provides a clean abstraction for the OOXML package format,
separating ZIP handling from XML manipulation concerns. Part bytes are held
in memory; parsed trees live in the PartCache and are written back here on
save.
"""

import io
import logging
import re
import threading
import zipfile
from pathlib import Path
from typing import Any, BinaryIO

from lxml import etree

from .errors import PartNotFoundError, ValidationError

logger = logging.getLogger(__name__)

_ENCODING_DECLARATION = re.compile(rb'(<\?xml[^>]*encoding=)["\']([^"\']*)["\']')


def normalize_part_name(part_name: str) -> str:
    """Convert a part URI ("/word/document.xml") to a package part name.

    Args:
        part_name: Part name or URI, with or without a leading slash

    Returns:
        Part name without the leading slash (e.g., "word/document.xml")
    """
    return part_name.lstrip("/")


def rels_part_name(part_name: str) -> str:
    """Compute the relationships part name for a given part.

    For example:
    - "word/document.xml" -> "word/_rels/document.xml.rels"
    - "" (the package itself) -> "_rels/.rels"

    Args:
        part_name: The part name to compute the rels part for

    Returns:
        Name of the .rels part
    """
    part_name = normalize_part_name(part_name)
    if not part_name:
        return "_rels/.rels"
    directory, _, filename = part_name.rpartition("/")
    if directory:
        return f"{directory}/_rels/{filename}.rels"
    return f"_rels/{filename}.rels"


def source_part_name(rels_name: str) -> str | None:
    """Inverse of rels_part_name().

    For example:
    - "word/_rels/document.xml.rels" -> "word/document.xml"
    - "_rels/.rels" -> "" (the package itself)

    Returns:
        The owning part name, or None if the name is not a .rels part
    """
    rels_name = normalize_part_name(rels_name)
    directory, _, filename = rels_name.rpartition("/")
    if not filename.endswith(".rels"):
        return None
    parent, _, folder = directory.rpartition("/")
    if folder != "_rels":
        return None
    owner = filename[: -len(".rels")]
    if not owner:
        return ""
    return f"{parent}/{owner}" if parent else owner


class OOXMLPackage:
    """Manages the OOXML ZIP package structure.

    This class handles the low-level operations of:
    - Reading .docx ZIP archives into memory
    - Providing access to package parts (bytes or parsed XML)
    - Repacking the parts back to ZIP format

    All access to part bytes goes through one lock per package, because
    every part shares the single underlying archive.

    Example:
        >>> with OOXMLPackage.open("document.docx") as pkg:
        ...     doc_xml = pkg.get_part("word/document.xml")
        ...     # Modify doc_xml...
        ...     pkg.set_part("word/document.xml", doc_xml)
        ...     pkg.save("modified.docx")
    """

    def __init__(self, parts: dict[str, bytes], source_path: Path | None = None) -> None:
        """Initialize package with already-read part contents.

        Use the class methods `open()` or `from_bytes()` instead of
        calling this constructor directly.

        Args:
            parts: Mapping of part name to raw bytes, in archive order
            source_path: Original source file path (for error messages)
        """
        self._parts = dict(parts)
        self._source_path = source_path
        self._lock = threading.RLock()
        self._closed = False

    @classmethod
    def open(cls, source: str | Path | BinaryIO) -> "OOXMLPackage":
        """Open an OOXML package from a file path or file-like object.

        Args:
            source: Path to .docx file or file-like object containing it

        Returns:
            OOXMLPackage instance with all part contents loaded

        Raises:
            ValidationError: If the source is not a valid ZIP file
        """
        source_path: Path | None = None

        # Normalize source to Path or BinaryIO
        if isinstance(source, str | Path):
            source_path = Path(source)
            if not source_path.exists():
                raise ValidationError(f"Document not found: {source_path}")
            zip_source: Path | BinaryIO = source_path
        else:
            zip_source = source

        # Verify it's a ZIP file
        if not zipfile.is_zipfile(zip_source):
            raise ValidationError("Source must be a valid .docx (ZIP) file")

        # Reset stream position if it was checked by is_zipfile
        if hasattr(zip_source, "seek"):
            zip_source.seek(0)

        parts: dict[str, bytes] = {}
        try:
            with zipfile.ZipFile(zip_source, "r") as zip_ref:
                for info in zip_ref.infolist():
                    if info.is_dir():
                        continue
                    parts[info.filename] = zip_ref.read(info)
        except zipfile.BadZipFile as e:
            raise ValidationError(f"Failed to read .docx file: {e}") from e

        logger.debug(f"Opened package with {len(parts)} parts")
        return cls(parts, source_path)

    @classmethod
    def from_bytes(cls, data: bytes) -> "OOXMLPackage":
        """Open an OOXML package from bytes.

        Args:
            data: Bytes containing a .docx file

        Returns:
            OOXMLPackage instance
        """
        return cls.open(io.BytesIO(data))

    @property
    def source_path(self) -> Path | None:
        """Get the original source file path, if available."""
        return self._source_path

    @property
    def lock(self) -> threading.RLock:
        """The lock serializing access to this package's part bytes."""
        return self._lock

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("Package has been closed")

    @property
    def part_names(self) -> list[str]:
        """Names of all parts in the package, in archive order."""
        with self._lock:
            self._check_open()
            return list(self._parts)

    def part_exists(self, part_name: str) -> bool:
        """Check if a package part exists.

        Args:
            part_name: Part name, with or without a leading slash

        Returns:
            True if the part exists
        """
        with self._lock:
            self._check_open()
            return normalize_part_name(part_name) in self._parts

    def read_part(self, part_name: str) -> bytes:
        """Read the raw bytes of a part.

        Args:
            part_name: Part name, with or without a leading slash

        Returns:
            The part contents

        Raises:
            PartNotFoundError: If the part does not exist
        """
        with self._lock:
            self._check_open()
            name = normalize_part_name(part_name)
            if name not in self._parts:
                raise PartNotFoundError(name)
            return self._parts[name]

    def write_part(self, part_name: str, data: bytes) -> None:
        """Create or replace a part with raw bytes.

        Args:
            part_name: Part name, with or without a leading slash
            data: New contents
        """
        with self._lock:
            self._check_open()
            self._parts[normalize_part_name(part_name)] = data

    def delete_part(self, part_name: str) -> bool:
        """Remove a part from the package.

        Args:
            part_name: Part name, with or without a leading slash

        Returns:
            True if the part existed and was removed
        """
        with self._lock:
            self._check_open()
            return self._parts.pop(normalize_part_name(part_name), None) is not None

    def get_part(self, part_name: str) -> etree._Element | None:
        """Get a package part as a parsed XML element.

        Args:
            part_name: Relative path within the package (e.g., "word/document.xml")

        Returns:
            Parsed XML root element, or None if part doesn't exist

        Raises:
            ValidationError: If the part is not well-formed XML
        """
        with self._lock:
            self._check_open()
            data = self._parts.get(normalize_part_name(part_name))
        if data is None:
            return None

        parser = etree.XMLParser(remove_blank_text=False, resolve_entities=False)
        try:
            return etree.fromstring(data, parser)
        except etree.XMLSyntaxError as e:
            raise ValidationError(f"Invalid XML in part '{part_name}': {e}") from e

    def set_part(self, part_name: str, element: etree._Element) -> None:
        """Serialize an XML element into a package part.

        Args:
            part_name: Relative path within the package (e.g., "word/document.xml")
            element: XML element to write
        """
        data = etree.tostring(
            element.getroottree(),
            encoding="UTF-8",
            xml_declaration=True,
            standalone=True,
        )
        self.write_part(part_name, data)

    def _fix_encoding_declaration(self, data: bytes) -> bytes:
        """Rewrite a non-UTF encoding declaration to UTF-8.

        OOXML requires UTF-8 or UTF-16 encoding, but some tools write
        encoding="ASCII" declarations that consumers reject.
        """
        match = _ENCODING_DECLARATION.search(data[:200])
        if match is None:
            return data

        encoding = match.group(2).decode("ascii", errors="replace").upper()
        if encoding in ("UTF-8", "UTF-16", "UTF-16LE", "UTF-16BE"):
            return data

        try:
            text = data.decode(encoding.lower())
        except (LookupError, UnicodeDecodeError):
            text = data.decode("latin-1")
        fixed = _ENCODING_DECLARATION.sub(rb'\1"UTF-8"', text.encode("utf-8"), count=1)
        logger.debug(f"Rewrote {encoding} encoding declaration to UTF-8")
        return fixed

    def _write_zip(self, target: str | Path | BinaryIO) -> None:
        with self._lock:
            self._check_open()
            with zipfile.ZipFile(target, "w", zipfile.ZIP_DEFLATED) as zip_ref:
                for name, data in self._parts.items():
                    if name.endswith((".xml", ".rels")):
                        data = self._fix_encoding_declaration(data)
                    zip_ref.writestr(name, data)

    def save(self, output_path: str | Path) -> None:
        """Save the package to a .docx file.

        Args:
            output_path: Path to save the .docx file
        """
        self._write_zip(Path(output_path))

    def save_to_bytes(self) -> bytes:
        """Save the package to bytes.

        Returns:
            The complete .docx file as bytes
        """
        buffer = io.BytesIO()
        self._write_zip(buffer)
        return buffer.getvalue()

    def close(self) -> None:
        """Release the in-memory part contents."""
        with self._lock:
            self._parts.clear()
            self._closed = True

    @property
    def closed(self) -> bool:
        """Whether close() has been called."""
        return self._closed

    def __enter__(self) -> "OOXMLPackage":
        """Context manager support."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager cleanup."""
        self.close()
