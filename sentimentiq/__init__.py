"""
SentimentIQ Pro

Tiered text analytics service: sentiment, key phrases, named entities,
extractive summaries and language detection over a cloud language
provider, with partial-failure tolerant multi-feature analysis.
"""

__version__ = "1.0.0"
__author__ = "SentimentIQ Team"
