"""Case-insensitive name matching against glob-style patterns.

Only ``*`` is special: it matches any run of characters, including an
empty one. Every other character (``?`` and ``[`` included) is literal.
"""


def match_pattern(name: str, pattern: str) -> bool:
    """Return True if ``name`` matches a single pattern."""
    name = name.casefold()
    parts = pattern.casefold().split("*")

    if len(parts) == 1:
        return name == parts[0]

    head, tail = parts[0], parts[-1]
    if not name.startswith(head):
        return False
    if len(name) - len(head) < len(tail) or not name.endswith(tail):
        return False

    # Middle fragments must appear in order between head and tail
    pos = len(head)
    end = len(name) - len(tail)
    for fragment in parts[1:-1]:
        if not fragment:
            continue
        idx = name.find(fragment, pos, end)
        if idx < 0:
            return False
        pos = idx + len(fragment)
    return True


def matches(name: str, patterns) -> bool:
    """Return True if ``name`` matches at least one of ``patterns``."""
    return any(match_pattern(name, p) for p in patterns)
