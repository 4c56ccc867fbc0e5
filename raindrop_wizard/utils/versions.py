"""Helpers for npm style version ranges found in package.json."""

import re

from packaging.version import InvalidVersion, Version

_COMPARATOR_RE = re.compile(
    r"^(<=|>=|<|>|=|\^|~)?v?(\d+)(?:\.(\d+|[xX*]))?(?:\.(\d+|[xX*]))?"
)
_UPPER_BOUNDS = ("<", "<=")


def min_version(version_range: str) -> Version | None:
    """Lowest version admitted by an npm range such as ``^18.2.0`` or ``~5``.

    Only the first comparator set is considered. Upper bounds (``<19``) do
    not raise the minimum, so a set made only of them starts at ``0.0.0``.
    Returns None for ranges without a concrete version (``*``, tags, git
    urls).
    """
    first_set = version_range.split("||")[0]
    if " - " in first_set:
        # Hyphen range: the left side is the lower bound
        first_set = first_set.split(" - ")[0]
    first_set = re.sub(r"(<=|>=|<|>|=|\^|~)\s+", r"\1", first_set)

    lower_bounds: list[Version] = []
    seen_comparator = False
    for token in first_set.split():
        match = _COMPARATOR_RE.match(token)
        if not match:
            continue
        seen_comparator = True
        operator, *numbers = match.groups()
        if operator in _UPPER_BOUNDS:
            continue
        parts = [p if p and p.isdigit() else "0" for p in numbers]
        try:
            lower_bounds.append(Version(".".join(parts)))
        except InvalidVersion:
            continue

    if lower_bounds:
        return max(lower_bounds)
    if seen_comparator:
        return Version("0.0.0")
    return None


def fulfills_version_range(
    version: str,
    minimum: str,
    can_be_latest: bool = False,
) -> bool:
    """True if the declared ``version`` range can only resolve to ``>= minimum``.

    Args:
        version: Range as declared in package.json
        minimum: Lowest acceptable version
        can_be_latest: Treat the ``latest`` tag as acceptable
    """
    if version.strip() == "latest":
        return can_be_latest

    lowest = min_version(version)
    if lowest is None:
        return False
    return lowest >= Version(minimum)
