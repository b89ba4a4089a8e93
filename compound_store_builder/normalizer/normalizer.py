import logging
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from compound_common.config_classes.source_profiles import (
    NormalizationPolicy,
    SourceFormat,
    SourceProfile,
)
from compound_common.exceptions.store_exceptions import MalformedSpectrum
from compound_store_builder.normalizer.field_coercion import FieldCoercion
from compound_store_builder.record_dataclasses import (
    COMPOUND_FIELDS,
    SPECTRUM_FIELDS,
    Compound,
    NormalizedBatch,
    RawRecord,
    Spectrum,
)

CANONICAL_FIELDS = set(COMPOUND_FIELDS) | set(SPECTRUM_FIELDS)


class Normalizer:
    """
    Turns the raw records of a single source into canonical Compound and Spectrum records.

    Field names are translated with the source profile's alias table. Values are coerced to the canonical types, and
    anything the table doesn't know about is kept in the record's extras. Then one of two policies is applied:

    - compound centric: one Compound per distinct compound_id. Later records for an id only fill in fields that are
      still empty.
    - spectrum centric: no deduplication at all. Every record keeps its own verbatim Compound row, and its Spectrum
      is linked to that exact row, even when another record carries the same compound_id with different values.

    Records that can't be used are dropped with a warning, their origins are collected in `self.dropped`.
    """

    def __init__(self, profile: SourceProfile):
        self.profile = profile
        self.dropped: List[str] = []
        self._generated_ids = 0

    @property
    def expects_spectra(self) -> bool:
        return self.profile.source_format == SourceFormat.spectrum_document or bool(self.profile.peak_tags)

    def normalize(self, records: Iterable[RawRecord]) -> NormalizedBatch:
        """
        Normalize a stream of raw records from this source.
        :param records: Iterable of RawRecords, typically straight from a parser.
        :return: NormalizedBatch holding the canonical compounds and spectra.
        """
        batch = NormalizedBatch(source=self.profile.name)
        compounds_by_id: Dict[str, Compound] = {}
        spectrum_ids: Set[str] = set()

        for record in records:
            canonical, extras = self.apply_aliases(record)

            compound = None
            if self.profile.emits_compounds:
                compound = self._to_compound(canonical, extras, record.origin)
                if compound is None:
                    continue

            if self.expects_spectra:
                spectrum = self._to_spectrum(canonical, extras, compound, record.origin, spectrum_ids)
                if spectrum is None:
                    continue
                spectrum_ids.add(spectrum.spectrum_id)
                batch.spectra.append(spectrum)

            if compound is None:
                continue
            if self.profile.policy == NormalizationPolicy.spectrum_centric:
                batch.compounds.append(compound)
            elif compound.compound_id in compounds_by_id:
                compounds_by_id[compound.compound_id].merge(compound)
            else:
                compounds_by_id[compound.compound_id] = compound

        batch.compounds.extend(compounds_by_id.values())
        print(
            f"Normalized {self.profile.name}: {len(batch.compounds)} compounds, {len(batch.spectra)} spectra, "
            f"{len(self.dropped)} records dropped"
        )
        return batch

    def apply_aliases(self, record: RawRecord) -> Tuple[Dict[str, Any], Dict[str, str]]:
        """
        Translate a raw record's field names to canonical names and coerce the values. When several source fields map
        to the same canonical field the first one with a usable value wins.
        :param record: RawRecord from a parser.
        :return: Tuple of (canonical field dict, extras dict).
        """
        canonical: Dict[str, Any] = {}
        extras: Dict[str, str] = {}
        for key, value in record.fields.items():
            if key in ("mz", "intensity"):
                canonical[key] = value
                continue

            target = self.profile.field_aliases.get(key)
            if target is None:
                name = FieldCoercion.to_extra_name(key)
                extra = FieldCoercion.to_extra_value(value)
                if name is None or name in CANONICAL_FIELDS or extra is None:
                    continue
                extras.setdefault(name, extra)
                continue

            if canonical.get(target) not in (None, []):
                continue
            coerced = self._coerce(target, value)
            if coerced is None and FieldCoercion.to_text(value) is not None:
                logging.warning(
                    f"{record.origin}: could not interpret {key}='{value}' as {target}, leaving it absent"
                )
            if coerced is not None:
                canonical[target] = coerced
        return canonical, extras

    def _coerce(self, target: str, value: Any) -> Any:
        if target in ("mass", "precursor_mz"):
            return FieldCoercion.to_float(value)
        if target == "polarity":
            return FieldCoercion.to_polarity(value)
        if target == "ms_level":
            return FieldCoercion.to_ms_level(value)
        if target == "predicted":
            return FieldCoercion.to_flag(value)
        if target == "synonyms":
            return FieldCoercion.to_synonyms(value, self.profile.synonym_separator)
        return FieldCoercion.to_text(value)

    def _to_compound(self, canonical: dict, extras: dict, origin: str) -> Optional[Compound]:
        if not (canonical.get("compound_id") or canonical.get("inchi") or canonical.get("formula")):
            self._drop(origin, "no compound_id, inchi or formula")
            return None
        compound_id = (
            canonical.get("compound_id")
            or canonical.get("inchi_key")
            or canonical.get("spectrum_id")
            or self._generate_id()
        )

        return Compound(
            compound_id=compound_id,
            compound_name=canonical.get("compound_name"),
            inchi=canonical.get("inchi"),
            inchi_key=canonical.get("inchi_key"),
            formula=canonical.get("formula"),
            mass=canonical.get("mass"),
            smiles=canonical.get("smiles"),
            synonyms=canonical.get("synonyms", []),
            # records that carry a spectrum keep their extra attributes on the spectrum
            extras={} if self.expects_spectra else dict(extras),
        )

    def _to_spectrum(
        self,
        canonical: dict,
        extras: dict,
        compound: Optional[Compound],
        origin: str,
        seen_ids: Set[str],
    ) -> Optional[Spectrum]:
        spectrum_id = canonical.get("spectrum_id")
        if spectrum_id is None:
            self._drop(origin, "no spectrum_id")
            return None
        if "mz" not in canonical or "intensity" not in canonical:
            self._drop(origin, f"spectrum {spectrum_id} has no peak list")
            return None
        if spectrum_id in seen_ids:
            self._drop(origin, f"duplicate spectrum_id {spectrum_id}")
            return None

        spectrum_centric = self.profile.policy == NormalizationPolicy.spectrum_centric
        try:
            return Spectrum(
                spectrum_id=spectrum_id,
                compound_id=compound.compound_id if compound is not None else canonical.get("compound_id"),
                mz=list(canonical["mz"]),
                intensity=list(canonical["intensity"]),
                collision_energy=canonical.get("collision_energy"),
                polarity=canonical.get("polarity"),
                ms_level=canonical.get("ms_level"),
                instrument=canonical.get("instrument"),
                instrument_type=canonical.get("instrument_type"),
                precursor_mz=canonical.get("precursor_mz"),
                precursor_type=canonical.get("precursor_type"),
                predicted=canonical.get("predicted"),
                splash=canonical.get("splash"),
                extras=dict(extras),
                compound=compound if spectrum_centric else None,
            )
        except MalformedSpectrum as e:
            self._drop(origin, f"{type(e).__name__}: {str(e)}")
            return None

    def _generate_id(self) -> str:
        self._generated_ids += 1
        return f"{self.profile.name.upper()}_{self._generated_ids:06d}"

    def _drop(self, origin: str, reason: str) -> None:
        logging.warning(f"Dropping record {origin}: {reason}")
        self.dropped.append(origin)
