"""
Allergy cross-reactivity resolver.

Matching is deliberately conservative: it over-flags rather than
under-flags.  A drug is contraindicated for an allergy when either name
contains the other, or when the allergy names a curated drug class and
the drug belongs to that class (e.g. penicillin allergy vs. amoxicillin).
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

CROSS_CLASS_ALLERGIES: dict[str, tuple[str, ...]] = {
    'penicillin': (
        'amoxicillin', 'ampicillin', 'amoxicillin/clavulanate',
        'piperacillin', 'flucloxacillin', 'dicloxacillin',
        'phenoxymethylpenicillin', 'benzylpenicillin',
    ),
    'sulfa': (
        'sulfamethoxazole', 'sulfadiazine', 'sulfasalazine',
        'trimethoprim/sulfamethoxazole', 'co-trimoxazole',
    ),
    'cephalosporin': (
        'cefalexin', 'cefuroxime', 'ceftriaxone', 'cefotaxime',
        'ceftazidime', 'cefixime',
    ),
    'codeine': (
        'morphine', 'tramadol', 'oxycodone', 'hydrocodone', 'fentanyl', 'buprenorphine',
    ),
}


class AllergyCrossReactivityResolver:

    def __init__(self, class_map: Mapping[str, Iterable[str]]):
        self._class_map = MappingProxyType({k: frozenset(v) for k, v in class_map.items()})

    @classmethod
    def default(cls) -> 'AllergyCrossReactivityResolver':
        return cls(CROSS_CLASS_ALLERGIES)

    @property
    def class_map(self) -> Mapping[str, frozenset]:
        return self._class_map

    def is_direct_match(self, drug: str, substance: str) -> bool:
        if not drug or not substance:
            return False
        return substance in drug or drug in substance

    def cross_reacting_classes(self, drug: str, substance: str) -> list[str]:
        return [
            key for key, members in self._class_map.items()
            if key in substance and drug in members
        ]

    def is_contraindicated(self, drug: str, substance: str) -> bool:
        """Both arguments must already be normalized (stripped, lowercase).

        An empty drug or substance never matches.  Plain substring containment
        would make an empty allergy record flag every drug; such records are
        treated as missing data instead.
        """
        if self.is_direct_match(drug, substance):
            return True
        if not drug or not substance:
            return False
        return bool(self.cross_reacting_classes(drug, substance))
