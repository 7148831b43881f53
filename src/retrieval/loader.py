"""Knowledge pack loader: JSONL facts + JSON disclaimer catalog.

Facts are parsed line by line. A bad line never aborts the load; it becomes
a LoadDiagnostic and the loader moves on. Only an unreadable facts file is
fatal.
"""

import json
import os
import re
from pathlib import Path
from typing import Optional, Union

import structlog

from .errors import LoadError
from .models import DisclaimerEntry, KnowledgeFact, LoadDiagnostic, LoadResult

logger = structlog.get_logger()

DEFAULT_FACTS_FILE = "nxtg_facts.jsonl"
DEFAULT_DISCLAIMERS_FILE = "disclaimers.json"

PathLike = Union[str, Path]

_LINE_SPLIT_RE = re.compile(r"\r?\n")


def _opt_str(value) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def parse_fact_line(
    line: str, line_no: int, path: Path
) -> tuple[Optional[KnowledgeFact], Optional[LoadDiagnostic]]:
    """Parse and validate one trimmed, non-blank JSONL line.

    Returns (fact, None) on success or (None, diagnostic) when the line is
    skipped. String ids must be non-blank; integer ids are kept as their
    decimal string. Any other id type drops the record.
    """
    try:
        parsed = json.loads(line)
    except json.JSONDecodeError as e:
        return None, LoadDiagnostic(path, line_no, f"invalid JSON: {e.msg}")

    if not isinstance(parsed, dict):
        return None, LoadDiagnostic(
            path, line_no, f"expected object, got {type(parsed).__name__}", level="debug"
        )

    fact_id = parsed.get("id")
    if isinstance(fact_id, int) and not isinstance(fact_id, bool):
        fact_id = str(fact_id)
    text = parsed.get("text")
    if not isinstance(fact_id, str) or not fact_id.strip():
        return None, LoadDiagnostic(path, line_no, "missing id", level="debug")
    if not isinstance(text, str) or not text.strip():
        return None, LoadDiagnostic(path, line_no, "missing text", level="debug")

    fact = KnowledgeFact(
        id=fact_id,
        text=text,
        source=_opt_str(parsed.get("source")) or "",
        timestamp=_opt_str(parsed.get("timestamp")) or "",
        category=_opt_str(parsed.get("category")),
    )
    return fact, None


def _read_text(path: Path) -> str:
    with open(path, encoding="utf-8") as f:
        return f.read()


def load_facts(path: PathLike) -> tuple[list[KnowledgeFact], list[LoadDiagnostic]]:
    """Load facts from a JSONL file.

    Raises:
        LoadError: file missing, unreadable, or not valid UTF-8.
    """
    path = Path(path).expanduser()
    try:
        raw = _read_text(path)
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"Cannot read facts file {path}: {e}") from e

    facts: list[KnowledgeFact] = []
    diagnostics: list[LoadDiagnostic] = []
    seen: set[str] = set()

    for line_no, line in enumerate(_LINE_SPLIT_RE.split(raw), start=1):
        trimmed = line.strip()
        if not trimmed:
            continue
        fact, diag = parse_fact_line(trimmed, line_no, path)
        if fact is not None and fact.id in seen:
            fact, diag = None, LoadDiagnostic(path, line_no, f"duplicate id {fact.id}")
        if diag is not None:
            diagnostics.append(diag)
            continue
        seen.add(fact.id)
        facts.append(fact)

    return facts, diagnostics


def _parse_disclaimer(entry, index: int, path: Path):
    if not isinstance(entry, dict):
        return None, LoadDiagnostic(path, 0, f"disclaimer #{index} is not an object")
    disc_id = entry.get("id")
    text = entry.get("text")
    if not isinstance(disc_id, str) or not isinstance(text, str):
        return None, LoadDiagnostic(path, 0, f"disclaimer #{index} missing id or text")

    required_for = entry.get("required_for") or []
    if not isinstance(required_for, list):
        required_for = [required_for]

    return (
        DisclaimerEntry(
            id=disc_id,
            text=text,
            category=_opt_str(entry.get("category")),
            required_for=tuple(str(tag) for tag in required_for),
        ),
        None,
    )


def load_disclaimers(
    path: PathLike, required: bool = False
) -> tuple[list[DisclaimerEntry], list[LoadDiagnostic]]:
    """Load the disclaimer catalog.

    Missing file, bad JSON or a missing ``disclaimers`` array degrade to an
    empty catalog unless ``required`` is set.
    """
    path = Path(path).expanduser()

    def _degrade(reason: str):
        if required:
            raise LoadError(f"Disclaimers file {path}: {reason}")
        return [], [LoadDiagnostic(path, 0, reason)]

    try:
        raw = _read_text(path)
    except (OSError, UnicodeDecodeError) as e:
        return _degrade(f"unreadable ({e})")

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        return _degrade(f"invalid JSON: {e.msg}")

    entries = parsed.get("disclaimers") if isinstance(parsed, dict) else None
    if not isinstance(entries, list):
        return _degrade("no disclaimers array")

    disclaimers: list[DisclaimerEntry] = []
    diagnostics: list[LoadDiagnostic] = []
    for i, entry in enumerate(entries):
        disclaimer, diag = _parse_disclaimer(entry, i, path)
        if diag is not None:
            diagnostics.append(diag)
        else:
            disclaimers.append(disclaimer)
    return disclaimers, diagnostics


def load_knowledge_pack(
    facts_path: PathLike,
    disclaimers_path: Optional[PathLike] = None,
    require_disclaimers: bool = False,
) -> LoadResult:
    """Load facts and (optionally) disclaimers into a LoadResult.

    Every skipped record is logged and kept in ``diagnostics``.
    """
    facts, diagnostics = load_facts(facts_path)

    disclaimers: list[DisclaimerEntry] = []
    if disclaimers_path is not None:
        disclaimers, disc_diags = load_disclaimers(disclaimers_path, required=require_disclaimers)
        diagnostics.extend(disc_diags)
    elif require_disclaimers:
        raise LoadError("Disclaimers are required but no disclaimers file was configured")

    for diag in diagnostics:
        log = logger.warning if diag.level == "warning" else logger.debug
        log("knowledge_record_skipped", path=str(diag.path), line=diag.line_no, reason=diag.reason)

    logger.info(
        "knowledge_pack_loaded",
        facts=len(facts),
        disclaimers=len(disclaimers),
        skipped=len(diagnostics),
    )
    return LoadResult(
        facts=tuple(facts),
        disclaimers=tuple(disclaimers),
        diagnostics=tuple(diagnostics),
    )


def resolve_knowledge_file(
    file_name: str,
    knowledge_dir: Optional[PathLike] = None,
    optional: bool = False,
) -> Optional[Path]:
    """Find a knowledge file in the configured dir, $KNOWLEDGE_DIR, ./knowledge or ../knowledge.

    Raises:
        LoadError: required file not found in any candidate location.
    """
    candidates: list[Path] = []
    base = knowledge_dir or os.getenv("KNOWLEDGE_DIR")
    if base:
        candidates.append(Path(base).expanduser() / file_name)
    cwd = Path.cwd()
    candidates.append(cwd / "knowledge" / file_name)
    candidates.append(cwd.parent / "knowledge" / file_name)

    for candidate in candidates:
        if candidate.exists():
            return candidate.resolve()

    if optional:
        logger.warning("knowledge_file_not_found", file=file_name, optional=True)
        return None

    tried = ", ".join(str(c) for c in candidates)
    raise LoadError(f"Knowledge file not found: {file_name}. Tried: {tried}")
