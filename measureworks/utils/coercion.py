"""Parsing of loosely typed inputs (env vars, form fields, JSON)."""

BOOL_WORDS = {
    "1": True, "true": True, "yes": True, "on": True,
    "0": False, "false": False, "no": False, "off": False,
}


def parse_bool(value, field: str = "value") -> bool:
    """Accept real booleans, 0/1 and the words in BOOL_WORDS; raise ValueError otherwise."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        parsed = BOOL_WORDS.get(value.strip().lower())
        if parsed is not None:
            return parsed
    raise ValueError(f"{field} expected boolean but received {value!r}")
