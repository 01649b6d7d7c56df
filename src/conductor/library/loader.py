"""
Skill Library -- resolves skill identifiers to markdown documents.

Layout on disk (one file per identifier):

    skills/
      core/thinking.md
      documents/powerpoint.md     -> "documents/powerpoint"

A document may start with YAML frontmatter (name, description, version,
keywords). Without frontmatter the usual skill conventions are parsed:

    # PowerPoint Creation Skill v1.0.0

    ## Activation
    - Keywords: powerpoint, presentation, slides, ppt, deck
"""

import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Sequence

import structlog
import yaml

from ..selector.rules import KeywordRule

logger = structlog.get_logger()

_FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*\n(.*)$", re.DOTALL)
_TITLE_RE = re.compile(r"^#\s+(.+?)(?:\s+v(\d+(?:\.\d+)*))?\s*$", re.MULTILINE)
_KEYWORDS_RE = re.compile(r"^\s*-\s*Keywords:\s*(.+)$", re.MULTILINE | re.IGNORECASE)

CONTEXT_SEPARATOR = "\n\n---\n\n"


class UnknownSkillError(KeyError):
    """Raised by SkillLibrary.get() when an identifier has no document."""

    def __init__(self, identifier: str):
        super().__init__(identifier)
        self.identifier = identifier

    def __str__(self) -> str:
        return f"Skill '{self.identifier}' not found in the library"


@dataclass
class SkillDocument:
    """A resolved skill document."""

    identifier: str
    title: str = ""
    version: str | None = None
    description: str = ""
    keywords: list[str] = field(default_factory=list)
    content: str = ""
    path: Path | None = None


class SkillLibrary:
    """Reads skill documents from a directory tree keyed by identifier."""

    CONSTITUTION_NAMES = ["CONSTITUTION.md", ".conductor.md", "CLAUDE.md"]

    def __init__(self, root: str | Path):
        self.root = Path(root)

    # ── Resolution ───────────────────────────────────────────────────────

    def path_for(self, identifier: str) -> Path | None:
        """Map an identifier to its document path, or None if it is unsafe."""
        ident = PurePosixPath(identifier)
        if not identifier or ident.is_absolute() or ".." in ident.parts or "\\" in identifier:
            return None
        return self.root / f"{identifier}.md"

    def resolve(self, identifier: str) -> SkillDocument | None:
        """Load the document for an identifier. Missing or unsafe -> None."""
        path = self.path_for(identifier)
        if path is None:
            logger.warning("library.unsafe_identifier", identifier=identifier)
            return None
        if not path.is_file():
            logger.warning("library.skill_missing", identifier=identifier, path=str(path))
            return None
        return self._parse(identifier, path)

    def get(self, identifier: str) -> SkillDocument:
        """Strict variant of resolve()."""
        doc = self.resolve(identifier)
        if doc is None:
            raise UnknownSkillError(identifier)
        return doc

    def discover(self) -> list[SkillDocument]:
        """Find every skill document under the root, sorted by identifier."""
        if not self.root.is_dir():
            return []
        docs: list[SkillDocument] = []
        for path in sorted(self.root.rglob("*.md")):
            if path.name.upper() == "README.MD":
                continue
            identifier = path.relative_to(self.root).with_suffix("").as_posix()
            doc = self._parse(identifier, path)
            if doc:
                docs.append(doc)
        logger.info(
            "library.discovered",
            root=str(self.root),
            count=len(docs),
        )
        return docs

    def activation_rules(self) -> list[KeywordRule]:
        """Keyword rules declared by the documents themselves."""
        return [
            KeywordRule(tuple(doc.keywords), doc.identifier)
            for doc in self.discover()
            if doc.keywords
        ]

    def _parse(self, identifier: str, path: Path) -> SkillDocument | None:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("library.read_error", path=str(path), error=str(e))
            return None

        match = _FRONTMATTER_RE.match(content)
        if match:
            try:
                meta = yaml.safe_load(match.group(1)) or {}
            except yaml.YAMLError:
                meta = {}
            if not isinstance(meta, dict):
                meta = {}
            body = match.group(2)
        else:
            meta = {}
            body = content

        title, version = "", None
        title_match = _TITLE_RE.search(body)
        if title_match:
            title, version = title_match.group(1).strip(), title_match.group(2)

        keywords = meta.get("keywords")
        if isinstance(keywords, str):
            keywords = keywords.split(",")
        if not keywords:
            kw_match = _KEYWORDS_RE.search(body)
            keywords = kw_match.group(1).split(",") if kw_match else []

        return SkillDocument(
            identifier=identifier,
            title=str(meta.get("name") or title or identifier),
            version=str(meta["version"]) if meta.get("version") is not None else version,
            description=str(meta.get("description", "")),
            keywords=[str(k).strip().lower() for k in keywords if str(k).strip()],
            content=body,
            path=path,
        )

    # ── Context assembly ─────────────────────────────────────────────────

    def load_constitution(self, workspace: str | Path) -> str | None:
        """Load the project constitution (first match wins)."""
        root = Path(workspace)
        for name in self.CONSTITUTION_NAMES:
            path = root / name
            if path.is_file():
                try:
                    content = path.read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError) as e:
                    logger.warning("library.read_error", path=str(path), error=str(e))
                    return None
                logger.info("library.constitution_loaded", file=name, chars=len(content))
                return content
        return None

    def build_context(
        self,
        identifiers: Sequence[str],
        max_active: int = 5,
        constitution: str | None = None,
    ) -> str:
        """Build the context block for a selection.

        Args:
            identifiers: Selection result, in priority order.
            max_active: Only the first N identifiers are resolved.
            constitution: Project constraints, placed before every skill.

        Returns:
            Blocks joined by a horizontal rule, or "" if there is nothing.
        """
        active = list(identifiers)[:max(0, max_active)]
        dropped = list(identifiers)[len(active):]
        if dropped:
            logger.info("library.truncated", max_active=max_active, dropped=dropped)

        parts: list[str] = []
        if constitution:
            parts.append(f"# Project Constitution\n\n{constitution.strip()}")

        for identifier in active:
            doc = self.resolve(identifier)
            if doc is None:
                continue
            header = f"# Skill: {doc.identifier}"
            if doc.version:
                header += f" (v{doc.version})"
            parts.append(f"{header}\n\n{doc.content.strip()}")

        return CONTEXT_SEPARATOR.join(parts)
