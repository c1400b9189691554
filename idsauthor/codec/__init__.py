"""IDS 1.0 XML import and export."""

from idsauthor.codec.reader import IDSParseError, from_xml, optionality_from_occurs, read_ids_file
from idsauthor.codec.values import decode, encode
from idsauthor.codec.writer import build_document, to_xml, write_ids_file

__all__ = [
    "IDSParseError",
    "build_document",
    "decode",
    "encode",
    "from_xml",
    "optionality_from_occurs",
    "read_ids_file",
    "to_xml",
    "write_ids_file",
]
