"""Text statistics reported with every analysis."""


def word_count(text: str) -> int:
    """Number of whitespace-delimited tokens in the trimmed text."""
    return len(text.strip().split())


def character_count(text: str) -> int:
    return len(text)


def summary_sentence_count(text: str) -> int:
    """How many sentences to ask the provider for when summarizing."""
    words = word_count(text)
    if words > 1000:
        return 5
    if words > 500:
        return 4
    if words > 200:
        return 3
    return 2
