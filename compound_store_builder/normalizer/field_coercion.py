import re
from typing import Any, List, Optional

MS_LEVEL = re.compile(r"^(?:MS)?\s*(\d+)$", re.IGNORECASE)
EXTRA_NAME = re.compile(r"[^0-9a-z]+")


class FieldCoercion:
    """
    Utility helpers for coercing raw source values into the types of our canonical attributes. Every helper returns
    None for a value it can't make sense of, the normalizer decides what to do about that.
    """

    POSITIVE = {"positive", "pos", "p", "+", "1"}
    NEGATIVE = {"negative", "neg", "n", "-", "0"}
    TRUE = {"true", "yes", "1"}
    FALSE = {"false", "no", "0"}

    @staticmethod
    def to_text(value: Any) -> Optional[str]:
        if isinstance(value, list):
            value = next((v for v in value if FieldCoercion.to_text(v) is not None), None)
        if value is None:
            return None
        value = str(value).strip()
        return value if value else None

    @staticmethod
    def to_float(value: Any) -> Optional[float]:
        text = FieldCoercion.to_text(value)
        if text is None:
            return None
        try:
            return float(text)
        except ValueError:
            return None

    @staticmethod
    def to_polarity(value: Any) -> Optional[int]:
        text = FieldCoercion.to_text(value)
        if text is None:
            return None
        if text.lower() in FieldCoercion.POSITIVE:
            return 1
        if text.lower() in FieldCoercion.NEGATIVE:
            return 0
        return None

    @staticmethod
    def to_ms_level(value: Any) -> Optional[int]:
        text = FieldCoercion.to_text(value)
        match = MS_LEVEL.match(text) if text is not None else None
        return int(match.group(1)) if match else None

    @staticmethod
    def to_flag(value: Any) -> Optional[int]:
        text = FieldCoercion.to_text(value)
        if text is None:
            return None
        if text.lower() in FieldCoercion.TRUE:
            return 1
        if text.lower() in FieldCoercion.FALSE:
            return 0
        return None

    @staticmethod
    def to_synonyms(value: Any, separator: Optional[str]) -> List[str]:
        """
        Turn a synonyms field into a list. Multi valued fields arrive as lists already, single valued ones are split on
        the source's separator if it has one. Order is preserved, blanks are dropped.
        """
        values = value if isinstance(value, list) else [value]
        synonyms = []
        for item in values:
            if item is None:
                continue
            parts = str(item).split(separator) if separator else [str(item)]
            synonyms.extend(part.strip() for part in parts if part.strip())
        return synonyms

    @staticmethod
    def to_extra_name(field_name: str) -> Optional[str]:
        """
        Snake case a source field name so it can be used as an attribute (and column) name, ie 'NUM PEAKS' becomes
        'num_peaks' and 'sample-concentration' becomes 'sample_concentration'.
        """
        name = EXTRA_NAME.sub("_", field_name.lower()).strip("_")
        if not name:
            return None
        return f"x_{name}" if name[0].isdigit() else name

    @staticmethod
    def to_extra_value(value: Any) -> Optional[str]:
        if isinstance(value, list):
            parts = [str(v).strip() for v in value if v is not None and str(v).strip()]
            return "; ".join(parts) if parts else None
        return FieldCoercion.to_text(value)
