"""All magic numbers and configuration constants."""

DEFAULT_ACTIVE_LANGUAGES = ("pt", "fr")   # first entry is the fallback language
DEFAULT_SPEED = 1.3                       # speech rate multiplier
SPEED_MIN = 0.5
SPEED_MAX = 2.0
SPEED_STEP = 0.1
MIN_CONTAINED_ENTRY = 3                   # chars; shorter lexicon entries must match exactly
COMPLETE_DELAY_S = 0.1                    # pause after a word finishes, lets the highlight settle
ERROR_DELAY_S = 0.05                      # pause after a failed word
SKIP_DELAY_S = 0.05                       # pause after a word with no voice
NEUTRAL_PITCH = 1.0
FULL_VOLUME = 1.0
TTS_RETRY_COUNT = 3                       # max attempts per synthesized word (export)
PLAYBACK_RETRY_COUNT = 1                  # live reading never retries, errors skip the word
TTS_RETRY_BASE_DELAY = 1.0                # seconds, base delay for exponential backoff
PLAYER_COMMAND = ("ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet")
EXPORT_PAUSE_MS = 100                     # silence between words in exported audio
EXPORT_BITRATE = "128k"
SETTINGS_FILE = "polyglot_reader.json"
VERSION = "0.1.0"

SAMPLE_TEXT = """Hoje vamos aprender os nomes da família em francês. É um vocabulário fundamental e muito útil para qualquer conversa.

Assim como em português, temos o masculino e o feminino, e o singular e o plural. Vamos ver os mais comuns:

Os parentes mais próximos:

Pai: Père

Mãe: Mère

Filho: Fils

Filha: Fille

Irmão: Frère

Irmã: Sœur

Avô: Grand-père

Avó: Grand-mère

Neto: Petit-fils

Neta: Petite-fille"""
