"""Per-word language classification by lexicon and diacritic heuristics."""

import re
from typing import Sequence

from polyglot_reader.constants import MIN_CONTAINED_ENTRY
from polyglot_reader.languages import DIACRITIC_ALPHABET, profile_for
from polyglot_reader.models import AnnotatedToken
from polyglot_reader.tokenizer import tokenize

# Anything that is not a-z, a known diacritic, or a hyphen
_STRIP_RE = re.compile("[^a-z" + "".join(sorted(DIACRITIC_ALPHABET)) + "-]")


def normalize(word: str) -> str:
    """Lowercase and strip punctuation, digits and unknown letters.

    "Grand-père:" → "grand-père", "¿Dónde?" → "dónde", "..." → ""
    """
    return _STRIP_RE.sub("", word.lower())


def _lexicon_match(normalized: str, lexicon: frozenset[str]) -> bool:
    if not normalized:
        return False
    if normalized in lexicon:
        return True
    # Substring matches catch compound and hyphenated forms; short entries
    # ("la", "de") would otherwise match inside almost any word.
    return any(
        len(entry) >= MIN_CONTAINED_ENTRY and entry in normalized
        for entry in lexicon
    )


def classify(word: str, active_languages: Sequence[str]) -> str:
    """Pick the language of one word from the active languages.

    Priority: lexicon match in list order → diacritic match in list order →
    first active language. The result is always an element of
    active_languages.
    """
    if not active_languages:
        raise ValueError("At least one active language is required")

    normalized = normalize(word)

    for code in active_languages:
        profile = profile_for(code)
        if profile and _lexicon_match(normalized, profile.lexicon):
            return code

    for code in active_languages:
        profile = profile_for(code)
        if profile and any(char in word for char in profile.diacritics):
            return code

    return active_languages[0]


def annotate(text: str, active_languages: Sequence[str]) -> list[AnnotatedToken]:
    """Tokenize text and tag every token with its language."""
    languages = list(active_languages)
    return [
        AnnotatedToken(token=token, language=classify(token.text, languages))
        for token in tokenize(text)
    ]
