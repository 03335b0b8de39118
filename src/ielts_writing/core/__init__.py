"""Core business logic.

Modules:
- bands: band arithmetic and the recent-band aggregate
- personalisation: coaching recommendation from profile + history
- prompts: the Task 1 / Task 2 prompt model
- feedback: examiner feedback schema
- oracle: single-shot oracle calls and reply decoding
- marker: essay marking adapter
- question_generator: candidate question adapter
- errors: domain errors
"""

__all__ = [
    "bands",
    "personalisation",
    "prompts",
    "feedback",
    "oracle",
    "marker",
    "question_generator",
    "errors",
]
