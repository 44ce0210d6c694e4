"""Operator prompts: installation choice and backup mode."""

from enroute_backup.backup.item_resolver import BackupMode

ALL_TOKENS = ("a", "all")

MODE_CHOICES = {
    "1": BackupMode.CURATED,
    "2": BackupMode.FULL_TREE,
}

MODE_DESCRIPTIONS = {
    BackupMode.CURATED: "Important files only (configuration, drivers, tools, preferences)",
    BackupMode.FULL_TREE: "Full installation (everything except excluded file types)",
}


class InvalidSelectionError(ValueError):
    """Operator input did not match any offered option."""


def format_installation_menu(installations) -> str:
    lines = ["Installations found:"]
    for idx, inst in enumerate(installations):
        lines.append(f"  [{idx}] {inst.path}")
    lines.append("  [A] All installations")
    return "\n".join(lines)


def parse_installation_choice(answer: str, installations) -> tuple[list, bool]:
    """Return (selected installations, all_selected) for an answer.

    Accepts a zero-based index or the all-token (``A``/``all``).
    """
    token = (answer or "").strip()
    if token.lower() in ALL_TOKENS:
        return list(installations), True
    if not token.isdecimal():
        raise InvalidSelectionError(f"Not a valid selection: {answer!r}")
    idx = int(token)
    if idx >= len(installations):
        raise InvalidSelectionError(
            f"Selection {idx} out of range (0-{len(installations) - 1})"
        )
    return [installations[idx]], False


def format_mode_menu() -> str:
    lines = ["Backup mode:"]
    for token, mode in MODE_CHOICES.items():
        lines.append(f"  [{token}] {MODE_DESCRIPTIONS[mode]}")
    return "\n".join(lines)


def parse_mode_choice(answer: str) -> BackupMode:
    token = (answer or "").strip()
    try:
        return MODE_CHOICES[token]
    except KeyError:
        raise InvalidSelectionError(f"Not a valid backup mode: {answer!r}") from None


def prompt(question: str, input_fn=input) -> str:
    """Ask a question; end of input counts as an empty answer."""
    try:
        return input_fn(question)
    except EOFError:
        return ""
