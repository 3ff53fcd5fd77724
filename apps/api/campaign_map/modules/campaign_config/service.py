"""Campaign vocabularies shared by the map and the CMS forms."""
from __future__ import annotations

from typing import Any, Dict, Iterable, Tuple

from fastapi import HTTPException

_LOCATION_TYPES = (
    ("city", "🏙️ Stadt"),
    ("town", "🏘️ Dorf"),
    ("village", "🏡 Weiler"),
    ("camp", "⛺ Lager"),
    ("landmark", "🗿 Orientierungspunkt"),
    ("ruin", "🏛️ Ruine"),
    ("dungeon", "☠️ Dungeon"),
    ("monster", "🐉 Monster"),
    ("environment", "🌳 Umgebung"),
    ("mountain", "⛰️ Berg/Gebirge"),
    ("lake", "💧 Gewässer"),
    ("island", "🏝️ Insel"),
    ("unknown", "❓ Unbekannt"),
)

_LOCATION_REGIONS = (
    ("north_adenai", "Nord-Adenai"),
    ("eastern_adenai", "Ost-Adenai"),
    ("south_adenai", "Süd-Adenai"),
    ("western_adenai", "West-Adenai"),
    ("valaris_region", "Valaris Region"),
    ("upeto", "Upeto"),
    ("harak", "Harak"),
    ("tua_danar", "Tua Danar"),
    ("rena_region", "Rena Region"),
    ("arcane_heights", "Arkane Höhen"),
    ("sun_peaks", "Sonnenspitzen"),
    ("cinnabar_fields", "Zinnober Felder"),
    ("ewige_donnerkluefte", "Ewige Donnerklüfte"),
    ("east_sea", "Östliche See"),
    ("west_sea", "Westliche See"),
    ("heaven", "Himmel"),
    ("underdark", "Underdark"),
    ("feywild", "Feywild"),
    ("unknown", "Unbekannt"),
    ("other", "Andere"),
)

_CHARACTER_STATUS = (
    ("alive", "😊 Lebend"),
    ("dead", "💀 Verstorben"),
    ("undead", "🧟 Untot"),
    ("missing", "❓ Vermisst"),
    ("unknown", "🤷 Unbekannt"),
)

_CHARACTER_RELATIONSHIPS = (
    ("ally", "😊 Verbündet"),
    ("friendly", "🙂 Freundlich"),
    ("neutral", "😐 Neutral"),
    ("suspicious", "🤨 Suspekt"),
    ("hostile", "😠 Ablehnend"),
    ("enemy", "⚔️ Feindlich"),
    ("unknown", "🤷 Unbekannt"),
    ("party", "👩‍👩‍👧‍👦 Gruppe"),
)

_MOVEMENT_TYPES = (
    ("stay", "🏡 Aufenthalt"),
    ("travel", "🚶 Reise"),
    ("return", "🔄 Rückkehr"),
    ("meeting", "🤝 Treffen"),
    ("mission", "⚔️ Mission"),
    ("exile", "🚪 Exil"),
    ("capture", "⛓️ Gefangenschaft"),
    ("escape", "🏃 Flucht"),
    ("other", "❓ Andere"),
)


def _section(pairs: Iterable[Tuple[str, str]]) -> Dict[str, Dict[str, str]]:
    return {value: {"value": value, "label": label} for value, label in pairs}


def campaign_config() -> Dict[str, Any]:
    return {
        "locationTypes": _section(_LOCATION_TYPES),
        "locationRegions": _section(_LOCATION_REGIONS),
        "characterStatus": _section(_CHARACTER_STATUS),
        "characterRelationships": _section(_CHARACTER_RELATIONSHIPS),
        "movementTypes": _section(_MOVEMENT_TYPES),
    }


def config_section(name: str) -> Dict[str, Dict[str, str]]:
    cfg = campaign_config()
    if name not in cfg:
        raise HTTPException(status_code=404, detail=f"Unknown config section: {name}")
    return cfg[name]
