"""
Merge plans: insert a list of documents into a host from a YAML or JSON file.

Example plan:
    ```yaml
    host: base.docx
    output: combined.docx
    author: Records Office      # optional
    documents:
      - path: appendix.docx
        position: end           # or "start"; default "end"
      - cover.docx              # shorthand for {path: cover.docx}
    ```

Relative paths are resolved against the directory of the plan file.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from ..errors import ValidationError

if TYPE_CHECKING:
    from ..document import Document
    from .merge import MergeResult

logger = logging.getLogger(__name__)

POSITIONS = ("end", "start")
_PLAN_KEYS = {"host", "output", "author", "documents"}
_ENTRY_KEYS = {"path", "position"}


@dataclass
class MergePlanEntry:
    """One document to insert.

    Attributes:
        path: Document to insert
        position: "end" to append, "start" to prepend
    """

    path: Path
    position: str = "end"

    @property
    def append(self) -> bool:
        return self.position == "end"


@dataclass
class MergePlan:
    """A validated merge plan.

    Attributes:
        host: Document receiving the content
        documents: Documents to insert, in order
        output: Where to save the result (None: do not save)
        author: Author for the resulting document, if given
    """

    host: Path
    documents: list[MergePlanEntry] = field(default_factory=list)
    output: Path | None = None
    author: str | None = None


@dataclass
class MergePlanResult:
    """Outcome of apply_merge_plan().

    Attributes:
        document: The host with every document inserted (still open)
        results: One MergeResult per inserted document
        output: Path the document was saved to, if any
    """

    document: Document
    results: list[MergeResult]
    output: Path | None = None


def _read_plan_file(path: Path, format: str | None) -> Any:
    fmt = format or ("json" if path.suffix.lower() == ".json" else "yaml")
    try:
        with open(path, encoding="utf-8") as f:
            if fmt == "yaml":
                return yaml.safe_load(f)
            if fmt == "json":
                return json.load(f)
    except yaml.YAMLError as e:
        raise ValidationError(f"Failed to parse YAML file: {e}") from e
    except json.JSONDecodeError as e:
        raise ValidationError(f"Failed to parse JSON file: {e}") from e
    raise ValidationError(f"Unsupported format: {fmt}")


def parse_merge_plan(data: Any, base_dir: Path | None = None) -> MergePlan:
    """Validate plan data loaded from YAML or JSON.

    All problems are collected before raising, so a caller sees every
    mistake in the plan at once.

    Args:
        data: The loaded plan
        base_dir: Directory relative paths are resolved against

    Returns:
        The validated MergePlan

    Raises:
        ValidationError: If the plan is malformed; `errors` lists each problem
    """
    if not isinstance(data, dict):
        raise ValidationError("Merge plan must contain a dictionary/object")

    base = base_dir or Path(".")
    errors: list[str] = []

    def resolve(value: Any, where: str) -> Path | None:
        if not isinstance(value, str) or not value.strip():
            errors.append(f"{where} must be a non-empty string")
            return None
        candidate = Path(value)
        return candidate if candidate.is_absolute() else base / candidate

    unknown = sorted(set(data) - _PLAN_KEYS)
    if unknown:
        errors.append(f"Unknown keys: {', '.join(unknown)}")

    host = resolve(data.get("host"), "'host'")
    output = resolve(data["output"], "'output'") if data.get("output") is not None else None

    author = data.get("author")
    if author is not None and (not isinstance(author, str) or not author.strip()):
        errors.append("'author' must be a non-empty string")
        author = None

    documents: list[MergePlanEntry] = []
    raw_documents = data.get("documents")
    if not isinstance(raw_documents, list) or not raw_documents:
        errors.append("'documents' must be a non-empty list")
        raw_documents = []

    for index, raw in enumerate(raw_documents):
        where = f"documents[{index}]"
        if isinstance(raw, str):
            raw = {"path": raw}
        if not isinstance(raw, dict):
            errors.append(f"{where} must be a path or a dictionary")
            continue
        extra = sorted(set(raw) - _ENTRY_KEYS)
        if extra:
            errors.append(f"{where}: unknown keys: {', '.join(extra)}")
        position = raw.get("position", "end")
        if position not in POSITIONS:
            errors.append(f"{where}: position must be one of {', '.join(POSITIONS)}")
        path = resolve(raw.get("path"), f"{where}.path")
        if path is not None and position in POSITIONS:
            documents.append(MergePlanEntry(path=path, position=position))

    if errors:
        raise ValidationError(f"Invalid merge plan ({len(errors)} problems)", errors)

    assert host is not None
    return MergePlan(host=host, documents=documents, output=output, author=author)


def load_merge_plan(path: str | Path, format: str | None = None) -> MergePlan:
    """Load and validate a merge plan file.

    Args:
        path: YAML or JSON plan file
        format: "yaml" or "json"; guessed from the suffix when None

    Raises:
        ValidationError: If the file cannot be parsed or the plan is malformed
        FileNotFoundError: If the file does not exist
    """
    plan_path = Path(path)
    if not plan_path.exists():
        raise FileNotFoundError(f"Merge plan not found: {path}")
    data = _read_plan_file(plan_path, format)
    return parse_merge_plan(data, base_dir=plan_path.parent)


def apply_merge_plan(path: str | Path, format: str | None = None) -> MergePlanResult:
    """Run a merge plan file.

    Every listed document is checked to exist before the host is touched.

    Args:
        path: YAML or JSON plan file
        format: "yaml" or "json"; guessed from the suffix when None

    Returns:
        MergePlanResult with the open host document

    Raises:
        ValidationError: If the plan is malformed or names missing documents

    Example:
        >>> outcome = apply_merge_plan("plan.yaml")
        >>> print(f"Inserted {len(outcome.results)} documents into {outcome.output}")
    """
    from ..document import DEFAULT_AUTHOR, Document

    plan = load_merge_plan(path, format)

    missing = [str(p) for p in [plan.host, *(e.path for e in plan.documents)] if not p.exists()]
    if missing:
        raise ValidationError("Merge plan names missing documents", missing)

    document = Document(plan.host, author=plan.author or DEFAULT_AUTHOR)
    results = []
    for entry in plan.documents:
        logger.info(f"Inserting {entry.path} at the {entry.position}")
        results.append(document.insert_document(entry.path, append=entry.append))

    if plan.output is not None:
        document.save(plan.output)
        logger.info(f"Saved merged document to {plan.output}")
    return MergePlanResult(document=document, results=results, output=plan.output)
