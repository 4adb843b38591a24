"""
Option Resolver - works out which normalized answers count as correct for
a question.

For mcq questions the stored correct_answer may be the option text itself
or the 0-based index of the option written as a string. The author's
choice is not recorded, so both readings are accepted:

1. the normalized correct_answer as literal text
2. when correct_answer is a run of digits that indexes into the options,
   the normalized text of that option

Stored options and answers are JSON text. Decoding never raises: bad
data is logged and treated as absent.
"""

import json
from typing import FrozenSet, List, Mapping, Optional

from deptquiz.models.quiz import QuestionType
from deptquiz.services.normalizer import normalize, is_empty
from deptquiz.logging_config import get_logger, log_with_context

logger = get_logger("grading")


def _load_json(value, kind: str, context: dict):
    """Decode a JSON string, returning None (and logging) on failure."""
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError) as e:
        log_with_context(logger, "WARNING",
            "Could not decode stored {}: {}".format(kind, e),
            context=context)
        return None


def decode_options(raw, context: dict = None) -> Optional[List]:
    """
    Decode a question's options into a list.

    Accepts an already-decoded list/tuple or JSON text of a list. Returns
    None for missing, undecodable or non-list data.
    """
    if raw is None:
        return None
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if isinstance(raw, (str, bytes)):
        decoded = _load_json(raw, "options", context or {})
        if isinstance(decoded, list):
            return decoded
        if decoded is not None:
            log_with_context(logger, "WARNING",
                "Stored options are not a list (got {})".format(type(decoded).__name__),
                context=context or {})
        return None
    log_with_context(logger, "WARNING",
        "Unsupported options type: {}".format(type(raw).__name__),
        context=context or {})
    return None


def decode_answers(raw, context: dict = None) -> Optional[Mapping]:
    """
    Decode a submitted answers payload into a mapping.

    Accepts a dict, a list (keyed by position) or JSON text of either.
    Returns None when the payload cannot be interpreted.
    """
    if isinstance(raw, (str, bytes)):
        raw = _load_json(raw, "answers", context or {})
        if raw is None:
            return None
    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, (list, tuple)):
        return {index: value for index, value in enumerate(raw)}
    if raw is not None:
        log_with_context(logger, "WARNING",
            "Unsupported answers type: {}".format(type(raw).__name__),
            context=context or {})
    return None


def _option_index(normalized_correct: str) -> Optional[int]:
    if normalized_correct.isdecimal():
        return int(normalized_correct)
    return None


def resolve_accepted_forms(question) -> FrozenSet[str]:
    """
    Return the set of normalized answers accepted as correct for a question.

    A question without a usable correct_answer resolves to an empty set, so
    nothing ever matches it.
    """
    literal = normalize(question.correct_answer)
    if is_empty(literal):
        return frozenset()

    accepted = {literal}
    if question.question_type != QuestionType.MCQ.value:
        return frozenset(accepted)

    options = decode_options(question.options, context={"question_id": question.id})
    if not options:
        return frozenset(accepted)

    index = _option_index(literal)
    if index is not None and index < len(options):
        option_text = normalize(options[index])
        if not is_empty(option_text):
            accepted.add(option_text)
    return frozenset(accepted)
