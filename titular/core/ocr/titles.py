"""Headline reconstruction from raw OCR text."""

import re

_ACCENTED = 'áéíóúÁÉÍÓÚñÑüÜ'
# Printable ASCII plus Spanish letters and marks; anything else is OCR noise
_GARBAGE_CHAR = re.compile(f'[^\\x20-\\x7E{_ACCENTED}¿¡°ºª]')
_GARBAGE_RUN = re.compile(f'[^\\x20-\\x7E{_ACCENTED}¿¡°ºª]{{3,}}')
_REPEATED_CHAR = re.compile(r'(.)\1{4,}')
_LETTER = re.compile(f'[a-zA-Z{_ACCENTED}]')
_HORIZONTAL_SPACE = re.compile(r'[^\S\n]+')

MAX_GARBAGE_RATIO = 0.3
MIN_LETTER_RATIO = 0.3
MIN_TITLE_LENGTH = 15
MAX_TITLE_LENGTH = 300

BOILERPLATE_KEYWORDS = (
    'publicidad',
    'anuncio',
    'advertisement',
    'haga click',
    'suscríbete',
    'newsletter',
    'cookie',
    'términos',
    'privacidad',
)

TITLE_PATTERNS = (
    re.compile(
        r'\b(?:el|la|los|las|un|una|unos|unas|del|de|en|por|para|con|sin|sobre|entre|hacia|hasta)\b', re.IGNORECASE
    ),
    re.compile(
        r'\b(?:presidente|gobierno|chile|santiago|país|economía|política|deportes|cultura|tecnología|salud|educación)\b',
        re.IGNORECASE,
    ),
    re.compile(r'\d{1,2}[/.-]\d{1,2}[/.-]\d{2,4}'),
    re.compile(r'\$\s*\d+'),
    re.compile(r'\d+[%º]'),
)


def clean_ocr_text(text: str | None) -> str:
    """Normalize OCR output and drop lines that are mostly noise.

    Horizontal whitespace is collapsed but line breaks are kept. Lines where
    more than 30% of the characters are control or unexpected symbols are
    removed.
    """
    if not text:
        return ''

    lines = []
    for line in text.replace('\r', '\n').split('\n'):
        line = _HORIZONTAL_SPACE.sub(' ', line).strip()
        if not line:
            continue
        if len(_GARBAGE_CHAR.findall(line)) / len(line) > MAX_GARBAGE_RATIO:
            continue
        lines.append(line)
    return '\n'.join(lines)


def is_valid_ocr_line(line: str) -> bool:
    """Reject lines with symbol runs, stuttered characters or too few letters."""
    if not line:
        return False
    if _GARBAGE_RUN.search(line) or _REPEATED_CHAR.search(line):
        return False
    return len(_LETTER.findall(line)) >= len(line) * MIN_LETTER_RATIO


def has_title_characteristics(line: str) -> bool:
    """True for lines that read like a headline.

    A headline has a Spanish article or preposition, a common news word,
    a date, an amount of money or a percentage, or five to fifteen words.
    """
    if any(pattern.search(line) for pattern in TITLE_PATTERNS):
        return True
    return 5 <= len(line.split(' ')) <= 15


def _looks_like_title(line: str) -> bool:
    if not MIN_TITLE_LENGTH < len(line) < MAX_TITLE_LENGTH:
        return False
    if re.fullmatch(r'[0-9\s.-]+', line):
        return False
    lowered = line.lower()
    if any(keyword in lowered for keyword in BOILERPLATE_KEYWORDS):
        return False
    if re.fullmatch(r'[a-z0-9]{20,}', line, re.IGNORECASE) or re.fullmatch(r'[A-Z\s]{30,}', line):
        return False
    return has_title_characteristics(line) and is_valid_ocr_line(line)


def process_titles(text: str | None) -> list[str]:
    """Probable headlines in OCR text.

    Args:
        text: Raw or cleaned OCR text

    Returns:
        Unique headlines (case-insensitive), longest first.

    """
    seen: set[str] = set()
    titles: list[str] = []
    for line in clean_ocr_text(text).split('\n'):
        if not _looks_like_title(line):
            continue
        key = line.lower()
        if key in seen:
            continue
        seen.add(key)
        titles.append(line)
    return sorted(titles, key=len, reverse=True)
