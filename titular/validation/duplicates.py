"""Content fingerprints and near-duplicate detection for extracted articles."""

import hashlib
import logging
import re

logger = logging.getLogger(__name__)

MIN_HASH_LENGTH = 50
MIN_COMBINED_LENGTH = 100
COMBINED_CONTENT_CHARS = 1000
DUPLICATE_THRESHOLD = 0.9

_LOOSE_PUNCTUATION = re.compile(r'\s+[.,;:!?]+\s+')
_NON_WORD = re.compile(r'[^\w\s]')


def normalize_for_hash(text: str | None) -> str:
    """Lowercase ``text``, collapse whitespace and drop punctuation.

    Accented letters are kept, so 'Acción' and 'accion' stay different.

    Examples:
        >>> normalize_for_hash('  El  Gobierno, hoy! ')
        'el gobierno hoy'

    """
    if not text or not isinstance(text, str):
        return ''
    normalized = re.sub(r'\s+', ' ', text.lower().strip())
    normalized = _LOOSE_PUNCTUATION.sub(' ', normalized)
    return _NON_WORD.sub('', normalized).strip()


def _sha256(text: str) -> str:
    return hashlib.sha256(text.encode('utf-8')).hexdigest()


def content_hash(content: str | None) -> str | None:
    """SHA-256 of the normalized content.

    Args:
        content: Article body

    Returns:
        64 character hex digest, or None when the normalized text is shorter
        than MIN_HASH_LENGTH characters.

    """
    normalized = normalize_for_hash(content)
    if len(normalized) < MIN_HASH_LENGTH:
        logger.debug(f'Content too short to hash ({len(normalized)} chars)')
        return None
    return _sha256(normalized)


def combined_hash(title: str | None, content: str | None) -> str | None:
    """SHA-256 of the normalized title plus the start of the content.

    Tolerates edits deep in the body, such as appended corrections.

    Returns:
        Hex digest, or None when the combined text is shorter than MIN_COMBINED_LENGTH.

    """
    combined = f'{normalize_for_hash(title)}|||{normalize_for_hash(content)[:COMBINED_CONTENT_CHARS]}'
    if len(combined) < MIN_COMBINED_LENGTH:
        return None
    return _sha256(combined)


def similarity(first: str | None, second: str | None) -> float:
    """Jaccard similarity of the word sets of two texts, from 0.0 to 1.0."""
    if not first or not second:
        return 0.0
    a, b = normalize_for_hash(first), normalize_for_hash(second)
    if a == b:
        return 1.0
    words_a, words_b = set(a.split(' ')), set(b.split(' '))
    union = words_a | words_b
    return len(words_a & words_b) / len(union) if union else 0.0


def are_duplicates(first: str | None, second: str | None, threshold: float = DUPLICATE_THRESHOLD) -> bool:
    """True if two article bodies are the same story.

    Identical hashes decide immediately; otherwise the word similarity must
    reach ``threshold``.
    """
    if not first or not second:
        return False
    first_hash, second_hash = content_hash(first), content_hash(second)
    if first_hash is not None and first_hash == second_hash:
        return True
    return similarity(first, second) >= threshold
