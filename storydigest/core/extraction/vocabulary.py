"""
Vocabulary tables for topic extraction and orphan resolution.

ENTITY_VOCABULARY lists UI/product nouns that anchor a topic.
SYNONYM_GROUPS drive semantic expansion when re-scoring orphans.
"""

ENTITY_VOCABULARY: tuple[str, ...] = (
    "dashboard",
    "table",
    "button",
    "form",
    "page",
    "modal",
    "dialog",
    "list",
    "chart",
    "graph",
    "report",
    "login",
    "signup",
    "search",
    "filter",
    "notification",
    "profile",
    "settings",
    "export",
    "upload",
    "menu",
    "sidebar",
    "header",
    "footer",
    "navbar",
    "tab",
    "card",
    "calendar",
    "map",
    "checkout",
    "cart",
    "invoice",
    "password",
    "account",
    "avatar",
    "widget",
    "banner",
    "toolbar",
    "dropdown",
    "checkbox",
    "comment",
    "message",
    "chat",
    "payment",
)

SYNONYM_GROUPS: tuple[frozenset[str], ...] = (
    frozenset({"login", "log in", "sign in", "signin", "authentication", "auth", "credentials"}),
    frozenset({"signup", "sign up", "register", "registration", "onboarding"}),
    frozenset({"dashboard", "overview", "home page", "homepage", "landing page"}),
    frozenset({"table", "grid", "rows", "spreadsheet"}),
    frozenset({"search", "find", "lookup", "look up", "query"}),
    frozenset({"filter", "filtering", "narrow down", "facet"}),
    frozenset({"export", "download", "csv", "pdf"}),
    frozenset({"upload", "attach", "attachment", "import"}),
    frozenset({"notification", "alert", "reminder", "email", "push"}),
    frozenset({"profile", "account", "avatar", "user details"}),
    frozenset({"settings", "preferences", "configuration", "options"}),
    frozenset({"report", "analytics", "metrics", "statistics", "stats", "chart", "graph"}),
    frozenset({"payment", "checkout", "billing", "invoice", "subscription", "pay"}),
    frozenset({"delete", "remove", "erase"}),
    frozenset({"permission", "role", "access", "admin", "privileges"}),
    frozenset({"button", "link", "cta"}),
    frozenset({"form", "input", "fields"}),
    frozenset({"mobile", "phone", "responsive", "tablet"}),
    frozenset({"message", "chat", "conversation", "inbox"}),
    frozenset({"menu", "navigation", "navbar", "sidebar"}),
)

# Subjects that name an actor rather than a feature
ROLE_WORDS = frozenset(
    {
        "user",
        "users",
        "admin",
        "admins",
        "administrator",
        "customer",
        "customers",
        "client",
        "clients",
        "manager",
        "managers",
        "visitor",
        "visitors",
        "guest",
        "guests",
        "people",
        "everyone",
        "someone",
        "team",
        "system",
        "app",
        "application",
    }
)

PRONOUNS = frozenset(
    {"it", "this", "that", "they", "we", "you", "i", "he", "she", "there", "which", "one", "these", "those", "them"}
)

# Adjectives dropped from subject phrases
SUBJECT_FILLERS = frozenset({"new", "simple", "basic", "nice", "big", "small", "little", "main", "whole", "same"})


def synonyms_of(term: str) -> set[str]:
    """Every synonym of term across all groups it belongs to (excluding term)."""
    term = term.lower()
    found: set[str] = set()
    for group in SYNONYM_GROUPS:
        if term in group or term.rstrip("s") in group:
            found |= group
    found.discard(term)
    return found
