"""IELTS Writing practice service.

Timed essay practice, AI band scoring against the official descriptors,
progress tracking and a staff-curated question bank.
"""

__version__ = "0.1.0"
