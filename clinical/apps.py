import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class ClinicalConfig(AppConfig):
    """Builds the drug safety knowledge once, at start-up.

    The interaction table and allergy class map are immutable afterwards and
    shared by every request.
    """
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'clinical'
    verbose_name = 'Clinical intelligence & safety'

    knowledge_base = None
    resolver = None
    evaluator = None

    def ready(self):
        from clinical.intelligence.allergies import AllergyCrossReactivityResolver
        from clinical.intelligence.interactions import CURATED_INTERACTIONS, DrugInteractionKnowledgeBase
        from clinical.intelligence.safety import DrugSafetyEvaluator

        self.knowledge_base = DrugInteractionKnowledgeBase.from_entries(CURATED_INTERACTIONS)
        self.resolver = AllergyCrossReactivityResolver.default()
        self.evaluator = DrugSafetyEvaluator(self.knowledge_base, self.resolver)
        logger.info('clinical app ready: %d interaction pairs, %d allergy classes',
                    len(self.knowledge_base), len(self.resolver.class_map))
