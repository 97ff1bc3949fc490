"""
Sector inference from an owner's address.
Only used to pre-fill a routine's sector; never stored on its own.
"""

import unicodedata
from typing import Optional

SECTOR_TOWNS: dict[str, tuple[str, ...]] = {
    "S1": ("nyon", "prangins", "crans", "eysins", "duillier"),
    "S2": ("gland", "vich", "rolle", "coppet", "founex"),
    "S3": ("begnins", "genolier", "bassins", "arzier"),
}


def _normalize(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).lower()


def infer_sector(address: Optional[str]) -> Optional[str]:
    """Return the first sector whose town appears in the address, or None."""
    if not address:
        return None

    words = set(_normalize(address).replace(",", " ").replace("-", " ").split())
    for sector, towns in SECTOR_TOWNS.items():
        if any(town in words for town in towns):
            return sector
    return None
