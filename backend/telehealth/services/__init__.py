"""Services for the telehealth clinical decision-support engine.

The reasoning pipeline is split into small pure modules:
- symptom_normalizer: canonical symptom keys and defaults
- condition_scorer: weighted signature scoring
- differential_ranker: confidence, ordering and explanations
- red_flags: safety rules over symptoms and vitals
- urgency_classifier: overall urgency decision
- follow_up_questions: questions that separate the leading candidates
- clinical_engine: orchestration and the ``analyze`` entry point

Analytics and the Redis assessment cache sit outside the pipeline.
"""
