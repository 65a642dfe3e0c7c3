def normalize_name(name: str) -> str:
    """Capitalise the first letter and lowercase the rest: "gARCÍA" -> "García"."""
    name = name.strip()
    first, rest = name[:1], name[1:]
    upper = first.upper()
    # Characters like "ß" expand when uppercased; keep them as they are
    if len(upper) == 1:
        first = upper
    return first + rest.lower()
