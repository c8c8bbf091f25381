"""Split raw text into reading-order tokens."""

from polyglot_reader.models import Token


def tokenize(text: str) -> list[Token]:
    """Split on runs of whitespace, dropping empty fragments.

    "  Pai:  Père\\n" → [Token("Pai:", 0), Token("Père", 1)]
    """
    return [Token(text=word, index=i) for i, word in enumerate(text.split())]
