"""
Curated drug-drug interaction knowledge base.

The table is built once from :data:`CURATED_INTERACTIONS` when the
``clinical`` app is ready and is read-only afterwards, so any number of
request threads can query it without locking.  Entries are keyed by the
lexicographically sorted pair of normalized drug names, which makes
``lookup(a, b)`` and ``lookup(b, a)`` the same O(1) dictionary hit.

Only exact (normalized) names match.  Brand names and synonyms that are
not listed verbatim are not resolved.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional

logger = logging.getLogger(__name__)


class InteractionSeverity(str, Enum):
    MINOR = 'MINOR'
    MODERATE = 'MODERATE'
    MAJOR = 'MAJOR'
    CONTRAINDICATED = 'CONTRAINDICATED'

    @property
    def triggers_alert(self) -> bool:
        return self in (InteractionSeverity.MAJOR, InteractionSeverity.CONTRAINDICATED)


def normalize_drug_name(name: Optional[str]) -> str:
    return (name or '').strip().lower()


def pair_key(drug_a: str, drug_b: str) -> tuple[str, str]:
    return (drug_a, drug_b) if drug_a <= drug_b else (drug_b, drug_a)


@dataclass(frozen=True)
class InteractionRecord:
    drug_a: str
    drug_b: str
    severity: InteractionSeverity
    mechanism: str
    clinical_effect: str
    recommendation: str

    @property
    def pair(self) -> tuple[str, str]:
        return pair_key(self.drug_a, self.drug_b)

    def involves(self, drug: str) -> bool:
        return drug in (self.drug_a, self.drug_b)

    def as_dict(self) -> dict:
        return {
            'drugA': self.drug_a,
            'drugB': self.drug_b,
            'severity': self.severity.value,
            'mechanism': self.mechanism,
            'clinicalEffect': self.clinical_effect,
            'recommendation': self.recommendation,
        }


class DrugInteractionKnowledgeBase:
    """Immutable, bidirectionally keyed interaction table."""

    def __init__(self, table: Mapping[tuple[str, str], InteractionRecord]):
        self._table = MappingProxyType(dict(table))

    @classmethod
    def from_entries(cls, entries: Iterable[tuple]) -> 'DrugInteractionKnowledgeBase':
        """Build the table from ``(drug_a, drug_b, severity, mechanism, effect, recommendation)`` rows.

        A pair listed twice is a curation error and raises ``ValueError``
        rather than letting the later row silently win.
        """
        table: dict[tuple[str, str], InteractionRecord] = {}
        for drug_a, drug_b, severity, mechanism, effect, recommendation in entries:
            record = InteractionRecord(
                drug_a=normalize_drug_name(drug_a),
                drug_b=normalize_drug_name(drug_b),
                severity=InteractionSeverity(severity),
                mechanism=mechanism,
                clinical_effect=effect,
                recommendation=recommendation,
            )
            if record.pair in table:
                raise ValueError(f'duplicate interaction pair: {record.pair[0]} / {record.pair[1]}')
            table[record.pair] = record
        logger.info('drug interaction knowledge base built with %d entries', len(table))
        return cls(table)

    def lookup(self, drug_a: str, drug_b: str) -> Optional[InteractionRecord]:
        return self._table.get(pair_key(drug_a, drug_b))

    def find_all_involving(self, drug: str) -> list[InteractionRecord]:
        return [r for r in self._table.values() if r.involves(drug)]

    def pairs(self) -> list[tuple[str, str]]:
        return list(self._table.keys())

    def __len__(self) -> int:
        return len(self._table)

    def __iter__(self) -> Iterator[InteractionRecord]:
        return iter(self._table.values())


MODERATE = InteractionSeverity.MODERATE
MAJOR = InteractionSeverity.MAJOR
CONTRAINDICATED = InteractionSeverity.CONTRAINDICATED

CURATED_INTERACTIONS: tuple[tuple, ...] = (
    # Anticoagulants
    ('warfarin', 'ibuprofen', MAJOR,
     'NSAID inhibits platelet aggregation and increases gastric bleeding risk; warfarin potentiated',
     'Significantly increased risk of serious bleeding',
     'Avoid combination; use paracetamol (acetaminophen) for analgesia if possible'),
    ('warfarin', 'naproxen', MAJOR,
     'NSAID inhibits platelet aggregation; warfarin anticoagulant effect potentiated',
     'Increased risk of GI and intracranial bleeding',
     'Avoid combination; monitor INR closely if unavoidable'),
    ('warfarin', 'aspirin', MAJOR,
     'Aspirin inhibits platelet aggregation and displaces warfarin from plasma proteins',
     'Significantly increased bleeding risk',
     'Use low-dose aspirin only when benefit clearly outweighs risk; monitor INR'),
    ('warfarin', 'clopidogrel', MAJOR,
     'Dual antiplatelet + anticoagulant combination',
     'Very high risk of major bleeding events',
     'Triple therapy (warfarin + aspirin + clopidogrel) requires specialist oversight'),
    ('warfarin', 'amiodarone', MAJOR,
     'Amiodarone inhibits CYP2C9 and CYP3A4, substantially increasing warfarin exposure',
     'INR can double or triple within days; severe bleeding risk',
     'Reduce warfarin dose by 30-50% and monitor INR twice weekly when starting amiodarone'),
    ('warfarin', 'fluconazole', MAJOR,
     'Fluconazole strongly inhibits CYP2C9 metabolism of warfarin',
     'INR markedly elevated; major bleeding risk',
     'Reduce warfarin dose; monitor INR closely during and after course'),
    ('warfarin', 'metronidazole', MAJOR,
     'Metronidazole inhibits CYP2C9, reducing warfarin clearance',
     'INR elevation and bleeding risk',
     'Monitor INR during metronidazole course; consider dose reduction'),

    # Cardiac
    ('digoxin', 'amiodarone', MAJOR,
     'Amiodarone inhibits P-glycoprotein and reduces renal clearance of digoxin',
     'Digoxin toxicity: bradycardia, heart block, nausea, visual disturbances',
     'Reduce digoxin dose by 50%; monitor serum digoxin levels and ECG'),
    ('digoxin', 'verapamil', MAJOR,
     'Verapamil inhibits P-glycoprotein-mediated elimination of digoxin',
     'Digoxin toxicity: bradycardia, AV block',
     'Reduce digoxin dose; monitor serum levels and heart rate'),
    ('digoxin', 'spironolactone', MODERATE,
     'Spironolactone may alter digoxin renal clearance and interfere with assay',
     'Risk of digoxin toxicity; spuriously elevated digoxin levels in some assays',
     'Monitor digoxin levels using assay unaffected by spironolactone'),
    ('lisinopril', 'spironolactone', MAJOR,
     'Both drugs reduce potassium excretion by different mechanisms',
     'Severe hyperkalaemia, potentially fatal cardiac arrhythmias',
     'Avoid unless heart failure protocol with careful K+ monitoring; start low dose'),
    ('ramipril', 'spironolactone', MAJOR,
     'ACE inhibitor + K-sparing diuretic cause additive hyperkalaemia',
     'Life-threatening hyperkalaemia',
     'Monitor K+ closely; avoid combination unless clinically necessary'),
    ('enalapril', 'potassium', MAJOR,
     'ACE inhibitor reduces aldosterone, increasing K+ retention',
     'Hyperkalaemia risk, especially with K+ supplements',
     'Monitor serum K+; avoid routine K+ supplementation'),
    ('atenolol', 'verapamil', MAJOR,
     'Additive negative chronotropic and dromotropic effects',
     'Severe bradycardia, AV block, or asystole',
     'Avoid combination; if necessary, use with telemetry monitoring'),
    ('amlodipine', 'simvastatin', MODERATE,
     'Amlodipine inhibits CYP3A4, increasing simvastatin exposure',
     'Increased risk of myopathy and rhabdomyolysis',
     'Do not exceed simvastatin 20mg daily; consider alternative statin'),

    # CNS / psychiatry
    ('ssri', 'maoi', CONTRAINDICATED,
     'Both drugs increase serotonergic neurotransmission by different mechanisms',
     'Serotonin syndrome: hyperthermia, rigidity, myoclonus, autonomic instability',
     'Contraindicated: allow 14-day washout after stopping MAOI before starting SSRI'),
    ('fluoxetine', 'phenelzine', CONTRAINDICATED,
     'Fluoxetine (SSRI) + phenelzine (MAOI) cause serotonin syndrome',
     'Life-threatening serotonin syndrome',
     'Contraindicated; 5-week washout after fluoxetine due to long half-life'),
    ('sertraline', 'tramadol', MAJOR,
     'Sertraline (SSRI) reduces CYP2D6 metabolism of tramadol; additive serotonergic effect',
     'Serotonin syndrome; seizures',
     'Avoid combination or use lowest effective doses with close monitoring'),
    ('fluoxetine', 'tramadol', MAJOR,
     'Fluoxetine inhibits CYP2D6, reducing tramadol conversion to active metabolite and increasing parent drug',
     'Serotonin syndrome risk; paradoxical reduced analgesia',
     'Avoid; use alternative analgesic'),
    ('lithium', 'ibuprofen', MAJOR,
     'NSAIDs reduce renal clearance of lithium',
     'Lithium toxicity: tremor, confusion, renal damage',
     'Avoid NSAIDs with lithium; use paracetamol (acetaminophen) instead'),
    ('lithium', 'naproxen', MAJOR,
     'NSAID reduces renal prostaglandin synthesis, decreasing lithium excretion',
     'Lithium toxicity',
     'Avoid; monitor lithium levels if NSAID unavoidable'),
    ('clozapine', 'ciprofloxacin', MAJOR,
     'Ciprofloxacin inhibits CYP1A2, the primary metabolic pathway for clozapine',
     'Clozapine toxicity: sedation, seizures, agranulocytosis risk',
     'Avoid or reduce clozapine dose by 50%; monitor closely'),
    ('ssri', 'tramadol', MAJOR,
     'Additive serotonergic effect; SSRI inhibits CYP2D6 metabolism of tramadol',
     'Serotonin syndrome; seizures',
     'Avoid; use non-serotonergic analgesic'),

    # Diabetes
    ('metformin', 'contrast', MAJOR,
     'Iodinated contrast media cause transient renal impairment, reducing metformin clearance',
     'Lactic acidosis, potentially fatal',
     'Withhold metformin 48h before and after IV contrast; ensure renal function normal before restarting'),
    ('metformin', 'alcohol', MAJOR,
     'Alcohol potentiates metformin inhibition of hepatic gluconeogenesis',
     'Increased risk of lactic acidosis',
     'Avoid excessive alcohol use with metformin'),
    ('glibenclamide', 'fluconazole', MAJOR,
     'Fluconazole inhibits CYP2C9 metabolism of glibenclamide (glyburide)',
     'Severe prolonged hypoglycaemia',
     'Avoid combination; monitor blood glucose closely if unavoidable'),

    # Antibiotics
    ('ciprofloxacin', 'antacids', MODERATE,
     'Divalent cations (Al, Mg, Ca) chelate ciprofloxacin in gut lumen',
     'Reduced ciprofloxacin absorption by up to 85%; treatment failure',
     'Separate administration by at least 2 hours (ciprofloxacin first)'),
    ('metronidazole', 'alcohol', MAJOR,
     'Metronidazole inhibits aldehyde dehydrogenase (disulfiram-like reaction)',
     'Flushing, tachycardia, nausea, vomiting (disulfiram reaction)',
     'Avoid alcohol during treatment and 48h after completion'),
    ('trimethoprim', 'methotrexate', MAJOR,
     'Additive antifolate effect; trimethoprim inhibits dihydrofolate reductase',
     'Severe myelosuppression, megaloblastic anaemia',
     'Avoid combination or use with folinic acid supplementation under specialist guidance'),
    ('doxycycline', 'antacids', MODERATE,
     'Divalent cations chelate tetracyclines in gut',
     'Reduced absorption of doxycycline; treatment failure',
     'Take doxycycline 2 hours before or 6 hours after antacids'),
    ('rifampicin', 'warfarin', MAJOR,
     'Rifampicin is a potent CYP inducer; dramatically increases warfarin metabolism',
     'Markedly reduced anticoagulant effect; thrombosis risk',
     'Monitor INR very frequently; may need to double or triple warfarin dose'),
    ('rifampicin', 'oral contraceptive', MAJOR,
     'Rifampicin induces CYP3A4 and UGT enzymes, reducing oestrogen and progestogen levels',
     'Contraceptive failure; unintended pregnancy',
     'Use additional non-hormonal contraception during and 4 weeks after rifampicin'),
    ('simvastatin', 'erythromycin', MAJOR,
     'Erythromycin inhibits CYP3A4-mediated statin metabolism',
     'Severe myopathy and rhabdomyolysis',
     'Withhold simvastatin during course of erythromycin; use azithromycin instead'),
    ('tacrolimus', 'fluconazole', MAJOR,
     'Fluconazole inhibits CYP3A4 and CYP2C19; tacrolimus levels increase greatly',
     'Tacrolimus toxicity: nephrotoxicity, neurotoxicity, QT prolongation',
     'Reduce tacrolimus dose by 50%; monitor levels closely'),

    # Respiratory
    ('theophylline', 'ciprofloxacin', MAJOR,
     'Ciprofloxacin inhibits CYP1A2, the primary metabolic pathway for theophylline',
     'Theophylline toxicity: tachycardia, seizures, hypokalaemia',
     'Reduce theophylline dose by 50% when starting ciprofloxacin; monitor levels'),
    ('theophylline', 'erythromycin', MAJOR,
     'Erythromycin inhibits CYP3A4 and CYP1A2, increasing theophylline levels',
     'Theophylline toxicity',
     'Use alternative antibiotic if possible; monitor levels closely'),

    # NSAIDs + ACE inhibitors
    ('ibuprofen', 'lisinopril', MODERATE,
     'NSAIDs reduce renal prostaglandin synthesis; impair ACE inhibitor renal effects',
     'Reduced antihypertensive effect; risk of acute kidney injury',
     'Avoid regular NSAID use; monitor renal function and blood pressure'),
    ('ibuprofen', 'ramipril', MODERATE,
     'NSAID reduces ACE inhibitor efficacy and increases renal injury risk',
     'Blood pressure elevation; acute kidney injury in susceptible patients',
     'Use paracetamol instead; monitor renal function if unavoidable'),
    ('naproxen', 'lisinopril', MODERATE,
     'Same mechanism as ibuprofen/ACE inhibitor interaction',
     'Reduced antihypertensive efficacy; renal impairment',
     'Avoid; prefer alternative analgesic'),

    # Antiplatelet / analgesic
    ('aspirin', 'methotrexate', MAJOR,
     'Aspirin (NSAID) reduces renal tubular secretion of methotrexate',
     'Methotrexate toxicity: severe myelosuppression, mucositis',
     'Avoid combination; if necessary, use with leucovorin rescue and frequent monitoring'),
    ('clopidogrel', 'omeprazole', MODERATE,
     'Omeprazole inhibits CYP2C19, reducing conversion of clopidogrel to active metabolite',
     'Reduced antiplatelet effect; possible increased cardiovascular events',
     'Use pantoprazole (lower CYP2C19 inhibition) as alternative PPI'),
    ('sildenafil', 'nitrate', CONTRAINDICATED,
     'Both drugs lower blood pressure via different mechanisms (cGMP pathway)',
     'Life-threatening hypotension',
     'Contraindicated; do not use together'),
)
