"""
chirps/profanity.py -- Replace banned words in chirp bodies.

Matching is per space-separated word and case-insensitive. Original
spacing is preserved. A banned
word with punctuation attached ("Sharbert!") is left alone.
"""

BANNED_WORDS: frozenset[str] = frozenset({"kerfuffle", "sharbert", "fornax"})
MASK = "****"


def clean_body(body: str) -> str:
    words = body.split(" ")
    return " ".join(MASK if w.lower() in BANNED_WORDS else w for w in words)
