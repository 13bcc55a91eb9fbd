"""
Secret generators used to fill fields that were left empty on add.
"""

import math
import secrets
import string
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import List, Optional

from . import config

PASSWORD_ALPHABET = string.ascii_letters + string.digits + string.punctuation
KEY_ALPHABET = string.ascii_letters + string.digits


def gen_password(length: int = config.DEFAULT_PASSWORD_LENGTH) -> str:
    """
    Generate a printable password with at least one lowercase letter, one
    uppercase letter, and digits making up at least 20% of its length.

    Raises:
        ValueError: If ``length`` is too short to satisfy the rules
    """
    min_digits = math.ceil(length * config.PASSWORD_DIGIT_RATIO)
    if length < config.PASSWORD_GENERATOR_MIN_LENGTH or length < min_digits + 2:
        raise ValueError(f"Password length must be at least {config.PASSWORD_GENERATOR_MIN_LENGTH}")

    chars = [secrets.choice(string.ascii_lowercase), secrets.choice(string.ascii_uppercase)]
    chars += [secrets.choice(string.digits) for _ in range(min_digits)]
    chars += [secrets.choice(PASSWORD_ALPHABET) for _ in range(length - len(chars))]
    secrets.SystemRandom().shuffle(chars)
    return ''.join(chars)


def gen_token(length: int = config.DEFAULT_TOKEN_LENGTH) -> str:
    """``length`` random bytes rendered as hex, so the result is twice as long."""
    return secrets.token_hex(length)


def gen_key(length: int = config.DEFAULT_KEY_LENGTH) -> str:
    """Random alphanumeric key; also used for entry ids."""
    return ''.join(secrets.choice(KEY_ALPHABET) for _ in range(length))


@lru_cache(maxsize=1)
def _builtin_wordlist() -> tuple:
    text = resources.files(__package__).joinpath(config.WORDLIST_FILE).read_text(encoding='utf-8')
    return tuple(_parse_words(text))


def _parse_words(text: str) -> List[str]:
    return [word.strip() for word in text.splitlines() if word.strip()]


def gen_passphrase(words: int = config.DEFAULT_PASSPHRASE_WORDS, wordlist: Optional[Path] = None) -> str:
    """
    Pick ``words`` random words and join them with spaces.

    Args:
        words: Number of words
        wordlist: Optional newline separated word file replacing the packaged list

    Raises:
        ValueError: If the word list is empty
    """
    if wordlist is not None:
        pool = _parse_words(Path(wordlist).read_text(encoding='utf-8'))
    else:
        pool = _builtin_wordlist()
    if not pool:
        raise ValueError("Word list is empty")
    return ' '.join(secrets.choice(pool) for _ in range(words))
