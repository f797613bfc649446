"""Legacy Word 97-2003 (``.doc``) attachments.

``olefile`` opens the compound-file container; the main-document text is then
read through the piece table stored in the ``0Table``/``1Table`` stream.
"""

from __future__ import annotations

import html
import io
import re
import struct
from typing import Mapping

import olefile

from casdoc.convert.formats import ConversionError

_WORD_IDENT = 0xA5EC
_FIB_FLAGS_OFFSET = 0x0A
_FIB_WHICH_TABLE = 0x0200
_FIB_CSW_OFFSET = 0x20
_CCP_TEXT_INDEX = 3
_CLX_PAIR_INDEX = 33

_PIECE_COMPRESSED = 0x40000000

# Field codes: \x13 code \x14 result \x15.  The code part is dropped.
_FIELD_CODE = re.compile(r"\x13[^\x13\x14\x15]*\x14")
_FIELD_NO_RESULT = re.compile(r"\x13[^\x13\x14\x15]*\x15")
_CONTROL = re.compile(r"[\x00-\x08\x0e-\x1f]")


def _u16(buf: bytes, offset: int) -> int:
    return struct.unpack_from("<H", buf, offset)[0]


def _u32(buf: bytes, offset: int) -> int:
    return struct.unpack_from("<I", buf, offset)[0]


def _read_fib(word: bytes) -> tuple[str, int, int, int]:
    """Return ``(table_stream, ccp_text, fc_clx, lcb_clx)`` from the FIB."""
    if len(word) < 0x22 or _u16(word, 0) != _WORD_IDENT:
        raise ConversionError("WordDocument stream has no Word 97 FIB")
    table = "1Table" if _u16(word, _FIB_FLAGS_OFFSET) & _FIB_WHICH_TABLE else "0Table"

    csw = _u16(word, _FIB_CSW_OFFSET)
    rg_lw = _FIB_CSW_OFFSET + 2 + csw * 2 + 2
    cslw = _u16(word, rg_lw - 2)
    ccp_text = _u32(word, rg_lw + _CCP_TEXT_INDEX * 4)

    rg_fc_lcb = rg_lw + cslw * 4 + 2
    fc_clx = _u32(word, rg_fc_lcb + _CLX_PAIR_INDEX * 8)
    lcb_clx = _u32(word, rg_fc_lcb + _CLX_PAIR_INDEX * 8 + 4)
    return table, ccp_text, fc_clx, lcb_clx


def _piece_table(clx: bytes) -> bytes:
    """Skip the Prc records of a Clx and return the PlcPcd payload."""
    i = 0
    while i < len(clx) and clx[i] == 0x01:
        i += 3 + _u16(clx, i + 1)
    if i >= len(clx) or clx[i] != 0x02:
        raise ConversionError("Clx has no piece table")
    lcb = _u32(clx, i + 1)
    return clx[i + 5 : i + 5 + lcb]


def _read_pieces(word: bytes, plc: bytes) -> str:
    count = (len(plc) - 4) // 12
    pcd_base = 4 * (count + 1)
    chunks: list[str] = []
    for k in range(count):
        cp_start = _u32(plc, 4 * k)
        cp_end = _u32(plc, 4 * (k + 1))
        fc = _u32(plc, pcd_base + 8 * k + 2)
        length = cp_end - cp_start
        if fc & _PIECE_COMPRESSED:
            offset = (fc & ~_PIECE_COMPRESSED) // 2
            chunks.append(word[offset : offset + length].decode("cp1252", errors="replace"))
        else:
            chunks.append(word[fc : fc + 2 * length].decode("utf-16-le", errors="replace"))
    return "".join(chunks)


def _normalize(text: str) -> str:
    previous = None
    while previous != text:
        previous = text
        text = _FIELD_CODE.sub("", text)
        text = _FIELD_NO_RESULT.sub("", text)
    text = text.replace("\x15", "").replace("\x13", "").replace("\x14", "")
    text = text.replace("\r", "\n").replace("\x0b", "\n").replace("\x0c", "\n")
    text = text.replace("\x07", "\t")
    return _CONTROL.sub("", text)


def text_from_word_streams(word: bytes, tables: Mapping[str, bytes]) -> str:
    """Return the main-document text given the raw streams of a ``.doc``."""
    table_name, ccp_text, fc_clx, lcb_clx = _read_fib(word)
    if table_name not in tables:
        raise ConversionError(f"missing {table_name} stream")
    clx = tables[table_name][fc_clx : fc_clx + lcb_clx]
    text = _read_pieces(word, _piece_table(clx))
    return _normalize(text[:ccp_text])


def extract_doc_text(data: bytes) -> str:
    try:
        ole = olefile.OleFileIO(io.BytesIO(data))
    except OSError as exc:
        raise ConversionError(f"not a Word 97-2003 document: {exc}") from exc
    try:
        if not ole.exists("WordDocument"):
            raise ConversionError("no WordDocument stream")
        word = ole.openstream("WordDocument").read()
        tables = {
            name: ole.openstream(name).read()
            for name in ("0Table", "1Table")
            if ole.exists(name)
        }
    finally:
        ole.close()
    return text_from_word_streams(word, tables)


def doc_text_to_html(text: str) -> str:
    return "".join(
        f"<p>{html.escape(line, quote=False)}</p>" for line in text.split("\n") if line.strip()
    )


def doc_to_html(data: bytes) -> str:
    return doc_text_to_html(extract_doc_text(data))
