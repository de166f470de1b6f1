from __future__ import annotations

import re
from dataclasses import dataclass


_CONTROL_RE = re.compile(r"[\f\v]")
_NONPRINT_RE = re.compile(r"[\x00-\x08\x0e-\x1f\x7f]")
_HYPHEN_BREAK_RE = re.compile(r"(\w)-\n(\w)")  # dehyphenate across line breaks

_DOUBLE_QUOTES = "“”„‟"
_SINGLE_QUOTES = "‘’‚‛"
_QUOTE_TABLE = str.maketrans({**{c: '"' for c in _DOUBLE_QUOTES}, **{c: "'" for c in _SINGLE_QUOTES}})

DEFAULT_ARTIFACT_PATTERNS: tuple[str, ...] = (
    r"\[Page \d+\]",
    r"\[CONFIDENTIAL\]",
)


@dataclass(frozen=True)
class CleaningProfile:
    name: str = "default"

    strip_controls: bool = True
    normalize_quotes: bool = True
    remove_artifacts: bool = True
    collapse_whitespace: bool = True
    dehyphenate: bool = False

    # bracketed document artifacts, matched case-insensitively
    artifact_patterns: tuple[str, ...] = DEFAULT_ARTIFACT_PATTERNS

    def artifact_regex(self) -> re.Pattern | None:
        if not self.remove_artifacts or not self.artifact_patterns:
            return None
        return _compile_artifacts(self.artifact_patterns)


_ARTIFACT_CACHE: dict[tuple[str, ...], re.Pattern] = {}


def _compile_artifacts(patterns: tuple[str, ...]) -> re.Pattern:
    rx = _ARTIFACT_CACHE.get(patterns)
    if rx is None:
        rx = re.compile("|".join(f"(?:{p})" for p in patterns), re.IGNORECASE)
        _ARTIFACT_CACHE[patterns] = rx
    return rx


DEFAULT_PROFILE = CleaningProfile()


def profile_from_cfg(cfg: dict | None) -> CleaningProfile:
    # allow empty cfg
    cfg = cfg or {}
    extra = tuple(str(p) for p in (cfg.get("extra_artifact_patterns") or []))
    patterns = cfg.get("artifact_patterns")
    base = tuple(str(p) for p in patterns) if patterns is not None else DEFAULT_ARTIFACT_PATTERNS
    return CleaningProfile(
        name=str(cfg.get("name", "default")),
        strip_controls=bool(cfg.get("strip_controls", True)),
        normalize_quotes=bool(cfg.get("normalize_quotes", True)),
        remove_artifacts=bool(cfg.get("remove_artifacts", True)),
        collapse_whitespace=bool(cfg.get("collapse_whitespace", True)),
        dehyphenate=bool(cfg.get("dehyphenate", False)),
        artifact_patterns=base + extra,
    )


def apply_cleaning(text: str, prof: CleaningProfile) -> str:
    """Character-level cleanup shared by both normalizers.

    Leaves line structure alone; whitespace collapsing is done by the caller.
    """
    if not text:
        return ""

    t = text.replace("\r\n", "\n").replace("\r", "\n")

    if prof.strip_controls:
        # form feeds and vertical tabs are page/field breaks in extracted text
        t = _CONTROL_RE.sub("\n", t)
        t = _NONPRINT_RE.sub("", t)

    if prof.dehyphenate:
        t = _HYPHEN_BREAK_RE.sub(r"\1\2", t)

    if prof.normalize_quotes:
        t = t.translate(_QUOTE_TABLE)

    rx = prof.artifact_regex()
    if rx is not None:
        t = rx.sub("", t)

    return t
