"""
Service Registry — the fixed list of service lines and their counter prefixes.

Requests arrive with service names typed on kiosks, stored by older releases,
or mangled by a wrong charset somewhere in between. resolve() maps every known
spelling onto one canonical name before any counter lookup:

  1. exact match
  2. unicode NFC + whitespace / hyphen cleanup
  3. mojibake repair (UTF-8 bytes that were decoded as cp1252 / latin-1)
  4. fixed legacy alias table
  5. lossy "?" key (every non-ASCII letter replaced by "?", as lossy
     charset conversion does), accepted only when it points at one service
"""

import re
import unicodedata
from dataclasses import dataclass
from typing import Optional

from app.services.errors import InvalidService


@dataclass(frozen=True)
class ServiceDescriptor:
    name: str
    counter_prefix: str


SERVICES = (
    ServiceDescriptor("Chứng thực - Hộ tịch", "1"),
    ServiceDescriptor("Văn thư", "2"),
    ServiceDescriptor("Đất đai", "3"),
    ServiceDescriptor("Lao động - Thương binh và Xã hội", "4"),
)

_BY_NAME = {s.name: s for s in SERVICES}

# Spellings written by earlier releases and imported spreadsheets
LEGACY_ALIASES = {
    "Chứng thực Hộ tịch": "Chứng thực - Hộ tịch",
    "Chứng thực, Hộ tịch": "Chứng thực - Hộ tịch",
    "Chứng thực – Hộ tịch": "Chứng thực - Hộ tịch",
    "Hộ tịch - Chứng thực": "Chứng thực - Hộ tịch",
    "Văn thư - Lưu trữ": "Văn thư",
    "Văn thư lưu trữ": "Văn thư",
    "Địa chính - Đất đai": "Đất đai",
    "Đất Đai": "Đất đai",
    "Lao động TBXH": "Lao động - Thương binh và Xã hội",
    "LĐTBXH": "Lao động - Thương binh và Xã hội",
    "Lao động - TB&XH": "Lao động - Thương binh và Xã hội",
}

_DASHES = re.compile(r"\s*[-–—]\s*")
_SPACES = re.compile(r"\s+")


def _clean(raw: str) -> str:
    text = unicodedata.normalize("NFC", raw)
    text = _SPACES.sub(" ", text).strip()
    return _DASHES.sub(" - ", text)


def _mojibake_byte(char: str) -> Optional[int]:
    try:
        return char.encode("cp1252")[0]
    except UnicodeEncodeError:
        # Bytes cp1252 leaves undefined (0x81, 0x8D, 0x8F, 0x90, 0x9D) pass through as C1 chars
        return ord(char) if ord(char) < 256 else None


def _repair_mojibake(text: str) -> Optional[str]:
    """Undo UTF-8 bytes decoded as cp1252 or latin-1, one character at a time."""
    raw = bytearray()
    for char in text:
        byte = _mojibake_byte(char)
        if byte is None:
            return None
        raw.append(byte)
    try:
        repaired = raw.decode("utf-8")
    except UnicodeDecodeError:
        return None
    return _clean(repaired) if repaired != text else None


def _lossy_key(text: str) -> str:
    chars = ["?" if ord(c) > 127 else c for c in unicodedata.normalize("NFC", text)]
    key = "".join(chars).replace("-", " ").lower()
    return _SPACES.sub(" ", key).strip()


def _build_lossy_index() -> dict:
    index = {}
    for name in list(_BY_NAME) + list(LEGACY_ALIASES):
        canonical = LEGACY_ALIASES.get(name, name)
        index.setdefault(_lossy_key(name), set()).add(canonical)
    return index


_LOSSY_INDEX = _build_lossy_index()
_CLEAN_ALIASES = {_clean(k): v for k, v in LEGACY_ALIASES.items()}


def _lookup(text: str) -> Optional[ServiceDescriptor]:
    if text in _BY_NAME:
        return _BY_NAME[text]
    alias = _CLEAN_ALIASES.get(text)
    return _BY_NAME[alias] if alias else None


def resolve(raw_name) -> ServiceDescriptor:
    """Return the descriptor for any known spelling of a service name."""
    if not isinstance(raw_name, str) or not raw_name.strip():
        raise InvalidService(raw_name)

    if raw_name in _BY_NAME:
        return _BY_NAME[raw_name]

    cleaned = _clean(raw_name)
    found = _lookup(cleaned)
    if found:
        return found

    # Repair the raw text: mojibake can contain NBSP and dash characters
    repaired = _repair_mojibake(raw_name)
    if repaired:
        found = _lookup(repaired)
        if found:
            return found

    candidates = _LOSSY_INDEX.get(_lossy_key(cleaned), set())
    if len(candidates) == 1:
        return _BY_NAME[next(iter(candidates))]

    raise InvalidService(raw_name)


def canonical_name(raw_name) -> str:
    return resolve(raw_name).name


def all_services() -> tuple:
    return SERVICES
