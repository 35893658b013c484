"""
Species Data

Typed records for the domain data the generators read: one JSON file
per species plus a flat localisation table of names, descriptions and
ability names.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..content import LoadResult, SkipRecord, read_json_file

logger = logging.getLogger(__name__)

SPECIES_KEY_PREFIX = "cobblemon.species."
ABILITY_KEY_PREFIX = "cobblemon.ability."


class SpeciesRecordError(ValueError):
    """A species file has a field that cannot be parsed."""


def base_species_id(species_id: str) -> str:
    """Collapse a form id to its species: "tornadus-therian" -> "tornadus"."""
    return species_id.split("-", 1)[0].lower()


def _optional_str(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise SpeciesRecordError(f"{key} must be a string")
    value = value.strip()
    return value or None


def _str_list(data: Mapping[str, Any], key: str) -> Tuple[str, ...]:
    value = data.get(key)
    if value is None:
        return ()
    if not isinstance(value, list):
        raise SpeciesRecordError(f"{key} must be a list")
    return tuple(v.strip() for v in value if isinstance(v, str) and v.strip())


def extract_pokedex_text(value: Any) -> Optional[str]:
    """
    Pull description text out of a species "pokedex" field.

    Accepts a plain string, {"entry": ...}, {"text": ...} or
    {"entries": [{"text": ...}, ...]} (first entry wins).
    """
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, list):
        for item in value:
            text = extract_pokedex_text(item)
            if text:
                return text
        return None
    if not isinstance(value, dict):
        return None

    for key in ("entry", "text"):
        if isinstance(value.get(key), str) and value[key].strip():
            return value[key].strip()

    entries = value.get("entries")
    if isinstance(entries, list) and entries and isinstance(entries[0], dict):
        text = entries[0].get("text")
        if isinstance(text, str) and text.strip():
            return text.strip()
    return None


@dataclass(frozen=True)
class SpeciesRecord:
    """
    One species file.

    Attributes:
        species_id: File stem, lower-cased ("tornadus-therian")
        name: Name given in the file, if any
        implemented: False for placeholder species
        primary_type: Primary type, lower-cased
        secondary_type: Secondary type, lower-cased
        dex_number: National dex number
        abilities: Ability ids, hidden ones prefixed with "h:"
        egg_groups: Egg group ids
        pre_evolution: Species this one evolves from
        pokedex: Description text from the file itself
    """

    species_id: str
    name: Optional[str] = None
    implemented: bool = True
    primary_type: Optional[str] = None
    secondary_type: Optional[str] = None
    dex_number: Optional[int] = None
    abilities: Tuple[str, ...] = ()
    egg_groups: Tuple[str, ...] = ()
    pre_evolution: Optional[str] = None
    pokedex: Optional[str] = None

    @property
    def base_id(self) -> str:
        return base_species_id(self.species_id)

    @classmethod
    def from_dict(cls, species_id: str, data: Any) -> "SpeciesRecord":
        """
        Parse a species file.

        Raises:
            SpeciesRecordError: If the document or a field is malformed
        """
        if not isinstance(data, dict):
            raise SpeciesRecordError("species file is not an object")

        implemented = data.get("implemented", True)
        if not isinstance(implemented, bool):
            raise SpeciesRecordError("implemented must be true or false")

        dex_number = data.get("nationalPokedexNumber")
        if dex_number is not None:
            if isinstance(dex_number, bool):
                raise SpeciesRecordError("nationalPokedexNumber must be an integer")
            try:
                dex_number = int(dex_number)
            except (TypeError, ValueError):
                raise SpeciesRecordError("nationalPokedexNumber must be an integer")
            if dex_number <= 0:
                raise SpeciesRecordError("nationalPokedexNumber must be positive")

        primary = _optional_str(data, "primaryType")
        secondary = _optional_str(data, "secondaryType")
        pre_evolution = _optional_str(data, "preEvolution")

        return cls(
            species_id=species_id.lower(),
            name=_optional_str(data, "name"),
            implemented=implemented,
            primary_type=primary.lower() if primary else None,
            secondary_type=secondary.lower() if secondary else None,
            dex_number=dex_number,
            abilities=tuple(a.lower() for a in _str_list(data, "abilities")),
            egg_groups=tuple(g.lower() for g in _str_list(data, "eggGroups")),
            pre_evolution=pre_evolution.lower() if pre_evolution else None,
            pokedex=extract_pokedex_text(data.get("pokedex")),
        )


@dataclass
class LangTable:
    """Localised species names, descriptions and ability names."""

    names: Dict[str, str] = field(default_factory=dict)
    descriptions: Dict[str, str] = field(default_factory=dict)
    abilities: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "LangTable":
        """
        Pick the species and ability keys out of a localisation table.

        Keys of the form "cobblemon.species.<id>.name",
        "cobblemon.species.<id>.desc" and "cobblemon.ability.<id>" are
        used; everything else is ignored.
        """
        table = cls()
        if not isinstance(data, dict):
            return table

        for key, value in data.items():
            if not isinstance(key, str) or not isinstance(value, str):
                continue

            if key.startswith(SPECIES_KEY_PREFIX):
                rest = key[len(SPECIES_KEY_PREFIX):]
                if rest.endswith(".name"):
                    table.names[rest[:-len(".name")].lower()] = value
                elif rest.endswith(".desc"):
                    table.descriptions[rest[:-len(".desc")].lower()] = value
            elif key.startswith(ABILITY_KEY_PREFIX):
                ability_id = key[len(ABILITY_KEY_PREFIX):]
                if "." not in ability_id:
                    table.abilities[ability_id.lower()] = value

        return table


@dataclass
class SpeciesData:
    """
    Everything the generators read.

    Attributes:
        records: Implemented species keyed by species id
        lang: Localisation table
        skipped: Species files that could not be used
    """

    records: Dict[str, SpeciesRecord] = field(default_factory=dict)
    lang: LangTable = field(default_factory=LangTable)
    skipped: List[SkipRecord] = field(default_factory=list)

    def display_name(self, species_id: str) -> str:
        """Localised name, then the file's own name, then the id."""
        record = self.records.get(species_id)
        return self.lang.names.get(species_id) or (record.name if record else None) or species_id

    def base_name(self, species_id: str) -> str:
        """Name of the base species, used for form-independent questions."""
        base_id = base_species_id(species_id)
        if base_id in self.lang.names:
            return self.lang.names[base_id]
        base_record = self.records.get(base_id)
        if base_record and base_record.name:
            return base_record.name
        record = self.records.get(species_id)
        return (record.name if record else None) or base_id

    @classmethod
    def from_dicts(
        cls,
        species: Mapping[str, Any],
        lang: Any = None,
    ) -> "SpeciesData":
        """
        Build from already parsed documents.

        Args:
            species: Raw species documents keyed by species id
            lang: Raw localisation table
        """
        result: LoadResult[SpeciesRecord] = LoadResult()
        for species_id, raw in species.items():
            try:
                record = SpeciesRecord.from_dict(species_id, raw)
            except SpeciesRecordError as e:
                result.skip(str(e), species_id)
                continue
            if not record.implemented:
                result.skip("not implemented", species_id)
                continue
            result.items.append(record)

        return cls(
            records={r.species_id: r for r in result.items},
            lang=LangTable.from_dict(lang),
            skipped=result.skipped,
        )


def load_species_data(
    species_dir: Optional[Union[str, Path]],
    lang_file: Optional[Union[str, Path]] = None,
) -> SpeciesData:
    """
    Read species files and the localisation table from disk.

    Species files are found recursively under species_dir; the species
    id is the file name without ".json". Unreadable files are skipped.
    """
    raw_species: Dict[str, Any] = {}
    unreadable: List[SkipRecord] = []

    if species_dir:
        species_dir = Path(species_dir)
        if not species_dir.is_dir():
            logger.warning(f"Species directory not found: {species_dir}")
        else:
            for path in sorted(species_dir.rglob("*.json")):
                species_id = path.stem.lower()
                document = read_json_file(path)
                if document is None:
                    unreadable.append(SkipRecord("unreadable file", species_id))
                    continue
                raw_species[species_id] = document

    lang = read_json_file(lang_file) if lang_file else None

    data = SpeciesData.from_dicts(raw_species, lang)
    data.skipped = unreadable + data.skipped

    for record in data.skipped:
        logger.warning(f"Skipped species {record.record_id}: {record.reason}")
    logger.info(
        f"Loaded {len(data.records)} species, {len(data.lang.names)} names, "
        f"{len(data.lang.descriptions)} descriptions"
    )
    return data
