"""
Keyword tables used by relationship scoring and diagram diagnostics.

All tables are plain data. Tune the weights and lists here, not the
shape of the scoring logic. A YAML file can override any table:

    role_synonyms:
      tutor: [tutor, coach, instructor]
    key_module_patterns:
      - booking calendar
"""

from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Mapping, Optional, Tuple
import logging

import yaml

logger = logging.getLogger(__name__)


STOPWORDS = frozenset({
    "the", "and", "of", "for", "to", "in", "on", "at", "by", "with",
    "from", "as", "is", "are", "was", "were", "be", "been", "being",
})

ROLE_SYNONYMS = MappingProxyType({
    "owner": ("owner", "admin", "administrator", "management", "manager", "director"),
    "consultant": ("consultant", "freelancer", "contractor"),
    "client": ("client", "customer", "user"),
    "employee": ("employee", "staff", "team member"),
    "manager": ("manager", "supervisor", "lead", "coordinator"),
})

MANAGEMENT_ROLES = ("owner", "manager", "director", "accountant")
MANAGEMENT_MODULE_KEYWORDS = ("report", "analytics", "dashboard", "status")
CLIENT_ROLES = ("client", "customer", "user")

# Generic entry points an isolated actor can always reach
ENTRY_POINT_PATTERNS = ("portal", "dashboard", "main", "home")

# Module names a client actor may legitimately reach
CLIENT_FACING_KEYWORDS = ("portal", "client", "viewing")

# Modules that are always expected to have at least one user
KEY_MODULE_PATTERNS = (
    "invoice submission portal",
    "status tracking",
    "reporting and analytics",
    "workflow visualization dashboard",
    "dashboard",
)

# Co-manager rule: an actor whose name holds one of the markers gets
# management affinity when some other actor's name holds the anchor.
CO_MANAGER_MARKERS = ("wife",)
CO_MANAGER_ANCHOR = "owner"

MAX_SCORE = 9  # desc(2) + name(2) + pain(2) + goal(1) + priority(1) + affinity(1)


@dataclass(frozen=True)
class KeywordTables:
    stopwords: frozenset = STOPWORDS
    role_synonyms: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: ROLE_SYNONYMS)
    management_roles: Tuple[str, ...] = MANAGEMENT_ROLES
    management_module_keywords: Tuple[str, ...] = MANAGEMENT_MODULE_KEYWORDS
    client_roles: Tuple[str, ...] = CLIENT_ROLES
    entry_point_patterns: Tuple[str, ...] = ENTRY_POINT_PATTERNS
    client_facing_keywords: Tuple[str, ...] = CLIENT_FACING_KEYWORDS
    key_module_patterns: Tuple[str, ...] = KEY_MODULE_PATTERNS
    co_manager_markers: Tuple[str, ...] = CO_MANAGER_MARKERS
    co_manager_anchor: Optional[str] = CO_MANAGER_ANCHOR

    def synonyms_for(self, word: str) -> Optional[Tuple[str, ...]]:
        return self.role_synonyms.get(word)


DEFAULT_TABLES = KeywordTables()


def _freeze(name: str, value):
    if name == "stopwords":
        return frozenset(str(v).lower() for v in value)
    if name == "role_synonyms":
        return MappingProxyType({
            str(key).lower(): tuple(str(v).lower() for v in words)
            for key, words in value.items()
        })
    if name == "co_manager_anchor":
        return str(value).lower() if value else None
    return tuple(str(v).lower() for v in value)


def tables_from_dict(data: dict, base: KeywordTables = DEFAULT_TABLES) -> KeywordTables:
    """
    Build tables from a plain mapping, keeping `base` values for keys
    that are absent. Unknown keys are ignored with a warning.
    """
    known = {f.name for f in fields(KeywordTables)}
    overrides = {}

    for key, value in (data or {}).items():
        if key not in known:
            logger.warning("[KEYWORDS] Ignoring unknown table '%s'", key)
            continue
        if value is None:
            continue
        overrides[key] = _freeze(key, value)

    return replace(base, **overrides)


def load_keyword_tables(path: Optional[str] = None) -> KeywordTables:
    """
    Load keyword tables from a YAML file merged over the defaults.
    Returns DEFAULT_TABLES when no path is given.
    """
    if not path:
        return DEFAULT_TABLES

    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Keyword table file must contain a mapping: {path}")

    logger.info("[KEYWORDS] Loaded keyword overrides from %s", path)
    return tables_from_dict(data)
