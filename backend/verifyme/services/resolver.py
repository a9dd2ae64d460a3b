"""
Identifier resolution for scanned or typed text.

Student QR codes are expected to carry the bare record id, but cards printed
by older releases, third-party scanner apps and hand-typed input produce JSON
payloads, verification URLs or text with the id embedded somewhere. Each
matcher below handles one of those shapes and is paired with a test for the
shape. ``resolve`` picks the first pair whose shape fits the text and runs
only that matcher; when it yields nothing the raw text itself is checked,
which rejects it.
"""

import json
import re
from typing import Callable, Optional

from verifyme.errors import EmptyInput, InvalidFormat

CANONICAL_ID_LENGTH = 20

CANONICAL_ID_RE = re.compile(r'^[A-Za-z0-9]{20}$')
ID_PARAM_RE = re.compile(r'id=([A-Za-z0-9]{20})')
EMBEDDED_ID_RE = re.compile(r'[A-Za-z0-9]{20}')

Matcher = Callable[[str], Optional[str]]
Shape = Callable[[str], bool]


def is_canonical_id(value) -> bool:
    return isinstance(value, str) and CANONICAL_ID_RE.match(value) is not None


def looks_structured(text: str) -> bool:
    return text.startswith(('{', '['))


def looks_like_link(text: str) -> bool:
    return 'student' in text or 'id=' in text


def any_text(text: str) -> bool:
    return True


def match_canonical(text: str) -> Optional[str]:
    """Text is already a record id"""
    return text if is_canonical_id(text) else None


def match_structured(text: str) -> Optional[str]:
    """JSON payload with an ``id`` or ``studentId`` field"""
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    value = data.get('id') or data.get('studentId')
    if value is None:
        return None
    return str(value)


def match_query_param(text: str) -> Optional[str]:
    """Verification link or labelled text carrying ``id=<record id>``"""
    match = ID_PARAM_RE.search(text)
    return match.group(1) if match else None


def match_embedded(text: str) -> Optional[str]:
    """First run of 20 alphanumerics anywhere in the text"""
    match = EMBEDDED_ID_RE.search(text)
    return match.group(0) if match else None


MATCHERS: tuple[tuple[Shape, Matcher], ...] = (
    (is_canonical_id, match_canonical),
    (looks_structured, match_structured),
    (looks_like_link, match_query_param),
    (any_text, match_embedded),
)


def extract_candidate(text: str) -> Optional[str]:
    """Candidate from the one matcher whose shape fits ``text``"""
    for fits, matcher in MATCHERS:
        if fits(text):
            return matcher(text)
    return None


def resolve(raw_text: str) -> str:
    """Canonical record id for ``raw_text``.

    Raises ``EmptyInput`` for blank text and ``InvalidFormat`` when the
    matcher chosen for the text's shape yields no 20 character
    alphanumeric id.
    """
    if raw_text is None or not raw_text.strip():
        raise EmptyInput()

    text = raw_text.strip()
    candidate = extract_candidate(text)

    # a JSON ``id`` field can hold anything
    if not is_canonical_id(candidate):
        raise InvalidFormat(raw_text)
    return candidate
