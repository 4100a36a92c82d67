"""
Entity detail templates and localized question templates.

ENTITY_DETAILS maps an entity to the details it implies, each with a
priority and the keywords that show the detail was already given.
QUESTION_TEMPLATES maps language -> template key -> text. Lookup falls
back to the default language; a key missing everywhere yields None.
"""

from dataclasses import dataclass

from storydigest.models.clarification import Priority


@dataclass(frozen=True)
class DetailSpec:
    """One detail implied by an entity."""

    detail: str
    priority: Priority
    keywords: tuple[str, ...]


ENTITY_DETAILS: dict[str, tuple[DetailSpec, ...]] = {
    "table": (
        DetailSpec("columns", Priority.P1, ("column", "field", "fields")),
        DetailSpec("actions", Priority.P2, ("edit", "delete", "action", "click", "view details")),
        DetailSpec("sorting", Priority.P3, ("sort", "sortable", "sorted", "order by", "ordered")),
    ),
    "form": (
        DetailSpec("fields", Priority.P1, ("field", "input", "name", "email", "phone")),
        DetailSpec("validation", Priority.P2, ("valid", "validation", "required", "format", "at least")),
        DetailSpec("submit", Priority.P2, ("submit", "save", "send", "redirect")),
    ),
    "button": (
        DetailSpec("action", Priority.P1, ("click", "clicking", "opens", "triggers", "navigates")),
        DetailSpec("label", Priority.P3, ("label", "says", "called", "named", "text")),
    ),
    "list": (
        DetailSpec("items", Priority.P1, ("item", "entry", "entries", "contains", "each")),
        DetailSpec("pagination", Priority.P3, ("pagination", "paginated", "scroll", "load more", "per page")),
    ),
    "chart": (
        DetailSpec("data", Priority.P1, ("metric", "data", "value", "revenue", "count")),
        DetailSpec("type", Priority.P2, ("bar", "line", "pie", "area", "donut")),
    ),
    "search": (
        DetailSpec("scope", Priority.P1, ("search by", "across", "searchable", "keyword")),
        DetailSpec("results", Priority.P2, ("result", "match", "matches")),
    ),
    "filter": (
        DetailSpec("criteria", Priority.P1, ("filter by", "status", "date", "category", "criteria")),
    ),
    "notification": (
        DetailSpec("trigger", Priority.P1, ("when", "trigger", "event", "after")),
        DetailSpec("channel", Priority.P2, ("email", "push", "sms", "in-app", "channel")),
    ),
    "login": (
        DetailSpec("method", Priority.P1, ("password", "sso", "google", "oauth", "magic link")),
        DetailSpec("recovery", Priority.P2, ("forgot", "reset", "recover", "recovery")),
    ),
    "report": (
        DetailSpec("contents", Priority.P1, ("include", "contains", "metric", "column", "total")),
        DetailSpec("schedule", Priority.P3, ("daily", "weekly", "monthly", "schedule", "scheduled")),
    ),
    "export": (
        DetailSpec("format", Priority.P1, ("csv", "pdf", "excel", "xlsx", "json", "format")),
    ),
    "upload": (
        DetailSpec("file_types", Priority.P1, ("pdf", "jpg", "png", "image", "file type", "format")),
        DetailSpec("size_limit", Priority.P2, ("mb", "gb", "size", "limit", "max")),
    ),
    "modal": (
        DetailSpec("trigger", Priority.P1, ("open", "opens", "click", "when", "appear")),
        DetailSpec("dismiss", Priority.P3, ("close", "dismiss", "cancel", "escape")),
    ),
}

QUESTION_TEMPLATES: dict[str, dict[str, str]] = {
    "en": {
        "table.columns": "Which columns should the {entity} in {topic} show?",
        "table.actions": "What actions can users take on rows of the {entity} (edit, delete, view)?",
        "table.sorting": "Should the {entity} be sortable or filterable, and by which columns?",
        "form.fields": "Which fields should the {entity} in {topic} contain?",
        "form.validation": "Which validation rules apply to the {entity} fields?",
        "form.submit": "What should happen when the {entity} is submitted?",
        "button.action": "What should happen when the user clicks the {entity}?",
        "button.label": "What should the {entity} label say?",
        "list.items": "What information should each item in the {entity} show?",
        "list.pagination": "Should the {entity} be paginated or scroll continuously?",
        "chart.data": "Which data or metrics should the {entity} display?",
        "chart.type": "What type of {entity} is needed (bar, line, pie)?",
        "search.scope": "Which fields should {entity} look through?",
        "search.results": "How should {entity} results be shown?",
        "filter.criteria": "Which criteria should users be able to filter by?",
        "notification.trigger": "Which events should trigger a {entity}?",
        "notification.channel": "How should the {entity} be delivered (email, push, in-app)?",
        "login.method": "Which sign-in methods should {entity} support?",
        "login.recovery": "How should users recover access if they forget their password?",
        "report.contents": "What should the {entity} include?",
        "report.schedule": "Should the {entity} be generated on a schedule?",
        "export.format": "Which file formats should {entity} support?",
        "upload.file_types": "Which file types can be uploaded?",
        "upload.size_limit": "Is there a maximum file size for uploads?",
        "modal.trigger": "What opens the {entity}?",
        "modal.dismiss": "How can the user dismiss the {entity}?",
        "specificity.styling": 'What exactly should "{phrase}" look like (colors, layout, reference designs)?',
        "specificity.usability": 'What would make {topic} "{phrase}" in concrete terms?',
        "specificity.performance": 'What response time counts as "{phrase}" for {topic}?',
        "specificity.validation": "Which validation rules apply (required fields, formats, lengths)?",
        "specificity.error_handling": "How should errors in {topic} be shown or recovered from?",
        "specificity.security": "Which security requirements apply to {topic} (authentication, roles, encryption)?",
        "specificity.open_list": 'Can you list everything you mean by "{phrase}"?',
        "contradiction": 'For {topic}, which is correct? "{first}" or "{second}"',
        "ambiguous_topic": 'Which feature does "{statement}" belong to? {candidates}',
        "followup.multiplicity": "Is there a limit on how many {subject} are allowed?",
        "followup.conditionality": "What should happen for {subject} when that condition is not met?",
        "followup.destructive": "Should removing {subject} ask for confirmation, and can it be undone?",
        "followup.permission": "Which roles are allowed to do this for {subject}?",
        "followup.deferred": "Is {subject} needed for the first release, or can it wait?",
    },
    "es": {
        "table.columns": "¿Qué columnas debe mostrar la {entity} en {topic}?",
        "table.actions": "¿Qué acciones pueden realizar los usuarios en las filas de la {entity}?",
        "form.fields": "¿Qué campos debe contener el {entity} en {topic}?",
        "button.action": "¿Qué debe pasar cuando el usuario hace clic en el {entity}?",
        "contradiction": '¿Cuál es correcto para {topic}? "{first}" o "{second}"',
    },
    "de": {
        "table.columns": "Welche Spalten soll die {entity} in {topic} anzeigen?",
        "form.fields": "Welche Felder soll das {entity} in {topic} enthalten?",
        "button.action": "Was soll passieren, wenn der Nutzer auf {entity} klickt?",
    },
    "fr": {
        "table.columns": "Quelles colonnes le {entity} de {topic} doit-il afficher ?",
        "form.fields": "Quels champs le {entity} de {topic} doit-il contenir ?",
    },
}

CONTRADICTION_BOTH_OPTION = "Both are needed"


def get_template(
    key: str,
    language: str,
    default_language: str = "en",
    templates: dict[str, dict[str, str]] | None = None,
) -> str | None:
    """
    Localized template for key.

    Falls back to default_language when the locale lacks the key;
    returns None when no language has it.
    """
    templates = templates if templates is not None else QUESTION_TEMPLATES
    for lang in (language, default_language):
        text = templates.get(lang, {}).get(key)
        if text:
            return text
    return None


def render_template(template: str, **values: str) -> str:
    """Fill a template, leaving unknown placeholders empty."""

    class _Defaults(dict):
        def __missing__(self, key: str) -> str:
            return ""

    return template.format_map(_Defaults(values)).strip()
