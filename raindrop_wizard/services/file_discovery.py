"""Candidate file discovery with include and ignore globs.

Patterns are matched against paths relative to the install directory. ``*``
and ``?`` never cross a ``/`` while ``**`` does. Brace alternation
(``*.{ts,tsx}``) is expanded and a ``**/`` prefix also matches zero
directories. An ignore pattern without a ``/`` matches any single path
segment, so ``node_modules`` excludes every ``node_modules`` directory in the
tree. Ignore patterns always win.
"""

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Sequence

from raindrop_wizard.utils.logging import get_logger

logger = get_logger(__name__)

_BRACE_RE = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternations into separate patterns."""
    match = _BRACE_RE.search(pattern)
    if not match:
        return [pattern]

    expanded: list[str] = []
    for alternative in match.group(1).split(","):
        candidate = pattern[: match.start()] + alternative + pattern[match.end() :]
        expanded.extend(expand_braces(candidate))
    return expanded


def _translate(glob: str) -> str:
    """Regex source for one brace-free glob.

    ``*`` and ``?`` stay inside a path segment, ``**`` crosses segments and a
    ``**/`` prefix also matches zero directories.
    """
    out: list[str] = []
    i, n = 0, len(glob)
    while i < n:
        char = glob[i]
        if glob.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif glob.startswith("**", i):
            out.append(".*")
            i += 2
        elif char == "*":
            out.append("[^/]*")
            i += 1
        elif char == "?":
            out.append("[^/]")
            i += 1
        elif char == "[":
            start = i + 1
            if glob[start : start + 1] == "!":
                start += 1
            if glob[start : start + 1] == "]":
                start += 1
            end = glob.find("]", start)
            if end == -1:
                out.append(re.escape(char))
                i += 1
                continue
            members = glob[i + 1 : end]
            negated = members.startswith("!")
            if negated:
                members = members[1:]
            members = re.sub(r"([\\\[\]^])", r"\\\1", members)
            # Negated classes still never match a separator
            out.append(f"[^/{members}]" if negated else f"[{members}]")
            i = end + 1
        else:
            out.append(re.escape(char))
            i += 1
    return "".join(out)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> tuple[re.Pattern[str], ...]:
    """Compiled matchers for every brace alternative of ``pattern``."""
    return tuple(re.compile(_translate(glob)) for glob in dict.fromkeys(expand_braces(pattern)))


def matches(path: str, pattern: str) -> bool:
    """True if the relative posix ``path`` matches the glob ``pattern``."""
    return any(regex.fullmatch(path) for regex in _compile(pattern))


def is_ignored(path: str, ignore_patterns: Sequence[str]) -> bool:
    """True if ``path`` or any of its parent directories is ignored."""
    parts = path.split("/")
    prefixes = ["/".join(parts[: i + 1]) for i in range(len(parts))]

    for pattern in ignore_patterns:
        bare = pattern.strip("/")
        if "/" not in bare:
            if any(matches(part, bare) for part in parts):
                return True
        elif any(matches(prefix, bare) for prefix in prefixes):
            return True
    return False


class FileDiscoverer:
    """Expands include/ignore globs against a project tree."""

    def __init__(self, include_hidden: bool = False):
        self.include_hidden = include_hidden

    def discover(
        self,
        install_dir: Path,
        filter_patterns: Sequence[str],
        ignore_patterns: Sequence[str] = (),
    ) -> list[str]:
        """List files matching any filter pattern and no ignore pattern.

        Args:
            install_dir: Project root the patterns are relative to
            filter_patterns: Globs selecting candidate files
            ignore_patterns: Globs excluding files or whole directories

        Returns:
            Sorted relative posix paths (may be empty)
        """
        root = Path(install_dir)
        found: list[str] = []

        for dirpath, dirnames, filenames in os.walk(root):
            rel_dir = Path(dirpath).relative_to(root).as_posix()
            rel_dir = "" if rel_dir == "." else rel_dir

            kept = []
            for name in sorted(dirnames):
                rel = f"{rel_dir}/{name}" if rel_dir else name
                if not self.include_hidden and name.startswith("."):
                    continue
                if is_ignored(rel, ignore_patterns):
                    continue
                kept.append(name)
            dirnames[:] = kept

            for name in sorted(filenames):
                if not self.include_hidden and name.startswith("."):
                    continue
                rel = f"{rel_dir}/{name}" if rel_dir else name
                if is_ignored(rel, ignore_patterns):
                    continue
                if any(matches(rel, pattern) for pattern in filter_patterns):
                    found.append(rel)

        found.sort()
        logger.debug(f"Discovered {len(found)} candidate files under {root}")
        return found
