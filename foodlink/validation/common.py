import re
from typing import Dict, Optional

from pydantic import ValidationError
from pydantic_core import PydanticCustomError

from foodlink.core.errors import FormValidationError

# executable / style blocks go with their content, other tags keep their text
_BLOCK_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")
_BRACKET_RE = re.compile(r"[<>]")
_INT_RE = re.compile(r"^[+-]?[0-9]+$")


def sanitize_text(text: str) -> str:
    """Strip markup and stray angle brackets, then trim.

    Guards stored fields against markup injection; not an HTML parser.
    """
    text = _BLOCK_RE.sub("", text)
    text = _TAG_RE.sub("", text)
    text = _BRACKET_RE.sub("", text)
    return text.strip()


def fail(kind: str, message: str) -> PydanticCustomError:
    return PydanticCustomError(kind, message)


def clean_text(
    value,
    *,
    max_len: int,
    too_long: str,
    required: Optional[str] = None,
    empty_after: Optional[str] = None,
) -> Optional[str]:
    """Length-check the raw value, then sanitize it.

    Returns None for a blank optional field.
    """
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise fail("string_type", "Must be text")
    if required and len(value) < 1:
        raise fail("required", required)
    if len(value) > max_len:
        raise fail("too_long", too_long)
    cleaned = sanitize_text(value)
    if required and not cleaned:
        raise fail("empty", empty_after or required)
    return cleaned or None


def parse_int(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INT_RE.match(value.strip()):
        return int(value.strip())
    return None


def first_errors(exc: ValidationError, names: Dict[str, str]) -> Dict[str, str]:
    """Collapse pydantic errors into {form field: first message}."""
    out: Dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc") or ("__root__",)
        field = names.get(str(loc[0]), str(loc[0]))
        out.setdefault(field, err["msg"])
    return out


def validate_form(model, data, names: Dict[str, str]):
    try:
        return model.model_validate(dict(data or {}))
    except ValidationError as exc:
        raise FormValidationError(first_errors(exc, names)) from exc
