"""Pure context-derivation components for the conversation engine.

Provides:
- Classifier: intent, emotional state, urgency, entities and client hints
- score_importance: 1-10 heuristic used to rank remembered snippets
- TopicSegmenter: topic continuation vs. new topic
- ContextWindowManager: bounded, importance-ranked snippet window
- summarize: briefing text for the LLM prompt
"""
