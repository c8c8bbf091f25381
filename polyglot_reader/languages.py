"""Supported languages and their static classification profiles.

Each language carries a lexicon of characteristic words (family vocabulary
plus common function words) and the diacritic characters that mark it.
The profile table is built once at import time, validated, and exposed
read-only.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType


class Language(str, Enum):
    PT = "pt"
    IT = "it"
    ES = "es"
    EN = "en"
    FR = "fr"
    DE = "de"


@dataclass(frozen=True)
class LanguageProfile:
    code: Language
    name: str
    flag: str
    lexicon: frozenset[str]
    diacritics: frozenset[str]


def _profile(code, name, flag, words, chars) -> LanguageProfile:
    return LanguageProfile(
        code=code,
        name=name,
        flag=flag,
        lexicon=frozenset(words.split()),
        diacritics=frozenset(chars.split()),
    )


_PROFILE_LIST = [
    # Portuguese is the usual majority language; its lexicon stays small so it
    # does not swallow short words of the second language.
    _profile(
        Language.PT, "Brazilian Portuguese", "🇧🇷",
        "mãe irmão irmã avô avó filho filha neto neta não você também família",
        "ã õ",
    ),
    _profile(
        Language.IT, "Italian", "🇮🇹",
        "padre madre figlio figlia fratello sorella nonno nonna nipote e il la lo "
        "gli le un una uno di del della dello dei delle degli in con per su molto "
        "bene tutto tutti anche come allora ma dove quando chi che cui questa "
        "questo questi queste suo sua suoi sue nostro nostra nostri nostre loro",
        "à è é ì í î ò ó ô ù ú û",
    ),
    _profile(
        Language.ES, "Spanish", "🇪🇸",
        "padre madre hijo hija hermano hermana abuelo abuela nieto nieta y el la "
        "los las un una unos unas de del en con para por sobre muy bien todo "
        "todos también como entonces pero dónde cuándo quién que esta este estos "
        "estas su sus nuestro nuestra nuestros nuestras",
        "á é í ó ú ñ ü",
    ),
    _profile(
        Language.EN, "English", "🇺🇸",
        "father mother son daughter brother sister grandfather grandmother "
        "grandson granddaughter and the a an of in with for on very well all "
        "also as then but where when who that this these his her their our",
        "",
    ),
    _profile(
        Language.FR, "French", "🇫🇷",
        "père mère fils fille frère sœur grand-père grand-mère petit-fils "
        "petite-fille et le la les un une des de du dans avec pour sur très bien "
        "tout tous aussi comme alors mais où comment quand qui que dont cette ces "
        "son sa ses notre nos leur leurs",
        "ç è é ê ë à â î ï ô û ù ÿ œ",
    ),
    _profile(
        Language.DE, "German", "🇩🇪",
        "vater mutter sohn tochter bruder schwester großvater großmutter enkel "
        "enkelin und der die das den dem des ein eine einen einem einer eines "
        "von in mit für auf sehr gut alle auch wie dann aber wo wann wer dass "
        "diese dieser dieses sein seine ihr ihre unser unsere",
        "ä ö ü ß",
    ),
]


def _build_profiles(profiles: list[LanguageProfile]) -> MappingProxyType:
    table = {}
    for profile in profiles:
        if profile.code in table:
            raise ValueError(f"Duplicate language profile: {profile.code.value}")
        for word in profile.lexicon:
            if word != word.lower():
                raise ValueError(f"Lexicon entry must be lowercase: {word!r}")
        for char in profile.diacritics:
            if len(char) != 1 or char != char.lower():
                raise ValueError(f"Diacritic must be one lowercase character: {char!r}")
        table[profile.code] = profile
    missing = set(Language) - set(table)
    if missing:
        raise ValueError(f"Missing language profiles: {sorted(m.value for m in missing)}")
    return MappingProxyType(table)


PROFILES = _build_profiles(_PROFILE_LIST)

# Every diacritic any profile recognizes; normalization keeps these.
DIACRITIC_ALPHABET = frozenset().union(*(p.diacritics for p in PROFILES.values()))


def is_supported(code: str) -> bool:
    try:
        Language(code)
    except ValueError:
        return False
    return True


def profile_for(code: str) -> LanguageProfile | None:
    """Profile for a language code, or None for codes we don't classify."""
    if not is_supported(code):
        return None
    return PROFILES[Language(code)]


def language_for_tag(tag: str) -> str | None:
    """Map a voice language tag ("fr-CA", "pt_BR") to a supported code."""
    prefix = tag.lower().replace("_", "-").split("-")[0]
    if is_supported(prefix):
        return Language(prefix).value
    return None


def describe(code: str) -> str:
    """Flag and display name, e.g. "🇫🇷 French"; the raw code when unknown."""
    profile = profile_for(code)
    if profile is None:
        return code
    return f"{profile.flag} {profile.name}"
