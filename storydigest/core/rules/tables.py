"""
Rule tables used by the digestion passes.

All entries are approximate by nature; they were tuned on product meeting
transcripts and chat exports in English, with a few common phrasings from
other Latin-script languages where noted.
"""

import re

from storydigest.core.rules.rules import Rule, RuleSet

MULTILINE = re.IGNORECASE | re.MULTILINE

# ═══════════════════════════════════════════════════════════
# CONTENT TYPE CLASSIFIER
# ═══════════════════════════════════════════════════════════

CONTENT_TYPE_RULES = RuleSet(
    "content_type",
    [
        # transcript
        Rule(r"^\s*\[?\d{1,2}:\d{2}(?::\d{2})?\]?\s", 2.0, "transcript", MULTILINE),
        Rule(r"^\s*[A-Z][\w .'-]{1,30}:\s", 1.5, "transcript", re.MULTILINE),
        Rule(r"\b(um+|uh+|you know|i mean|yeah)\b", 0.5, "transcript"),
        # requirements
        Rule(r"\b(should|must|shall)\b", 1.0, "requirements"),
        Rule(r"\b(needs? to|has to|have to|required?)\b", 1.0, "requirements"),
        Rule(r"\b(feature|requirement|functionality)\b", 1.0, "requirements"),
        # technical spec
        Rule(r"\b(api|endpoint|schema|database|latency|protocol)\b", 1.0, "technical_spec"),
        Rule(r"\b(GET|POST|PUT|DELETE|PATCH)\s+/", 2.0, "technical_spec"),
        Rule(r"\b(json|http|rest|graphql|sql)\b", 0.75, "technical_spec"),
        # meeting notes
        Rule(r"\b(agenda|attendees|action items?|minutes|next steps)\b", 2.0, "meeting_notes"),
        Rule(r"^\s*[-*]\s+", 0.5, "meeting_notes", MULTILINE),
        # user story
        Rule(r"\bas an? [\w ]+?, i want\b", 3.0, "user_story"),
        Rule(r"\bso that\b", 1.0, "user_story"),
        Rule(r"\b(given|when|then)\b.*\b(then)\b", 1.5, "user_story"),
        Rule(r"\bacceptance criteria\b", 2.0, "user_story"),
        # bug report
        Rule(r"\b(steps to reproduce|expected|actual (behaviou?r|result))\b", 2.0, "bug_report"),
        Rule(r"\b(bug|crash(es|ed)?|error|exception|stack ?trace)\b", 1.0, "bug_report"),
        # documentation
        Rule(r"^\s*#{1,6}\s+\w", 1.5, "documentation", MULTILINE),
        Rule(r"\b(installation|usage|overview|introduction|getting started)\b", 1.0, "documentation"),
        # email thread
        Rule(r"^\s*(from|to|cc|subject|sent):\s", 2.0, "email_thread", MULTILINE),
        Rule(r"\b(regards|best wishes|dear|hi all)\b", 1.0, "email_thread"),
        Rule(r"^\s*>", 0.5, "email_thread", MULTILINE),
        # code
        Rule(r"\b(def|class|function|import|return|const|let|var)\b\s+\w", 1.5, "code"),
        Rule(r"[{};]\s*$", 0.75, "code", MULTILINE),
        Rule(r"(==|!=|=>|->|\+\+)", 0.5, "code"),
    ],
)

CONTENT_TYPE_THRESHOLD = 2.0

# ═══════════════════════════════════════════════════════════
# STATEMENT FILTERING
# ═══════════════════════════════════════════════════════════

FILLER_RULES = RuleSet(
    "filler",
    [
        # acknowledgements
        Rule(
            r"^(ok(ay)?|yeah|yep|yes|no|nope|sure|right|cool|great|nice|perfect|exactly|"
            r"got it|makes sense|sounds good|fair enough|agreed|totally|absolutely|indeed|"
            r"i see|mhm+|hmm+|uh[- ]huh|alright|all right)([\s,]+(ok(ay)?|yeah|yes|sure|right|"
            r"cool|great|thanks|so))*[.!?…]*$",
            1.0,
            "acknowledgement",
        ),
        Rule(r"^(thanks|thank you|cheers|thx)( (so|very) much| everyone| all)?[.!?]*$", 1.0, "acknowledgement"),
        # greetings
        Rule(
            r"^(hi|hello|hey|good (morning|afternoon|evening)|welcome|bye|goodbye|see you|"
            r"talk (to you )?soon|have a (good|nice) (day|one))( (everyone|all|guys|team|there))?[.!?]*$",
            1.0,
            "greeting",
        ),
        Rule(r"^can (you|everyone) (hear|see) (me|my screen)\??$", 1.0, "greeting"),
        # hedges and verbal pauses
        Rule(
            r"^(um+|uh+|er+|well|so|like|i mean|you know|let me (think|see)|"
            r"i('m| am) not sure|maybe|i guess|i think so|good question|one (sec|second|moment))[.,!?… ]*$",
            1.0,
            "hedge",
        ),
    ],
)

REQUIREMENT_SIGNAL_RULES = RuleSet(
    "requirement_signal",
    [
        Rule(r"\b(should|must|shall)\b", 1.0, "modal"),
        Rule(r"\b(needs?|needed)\b", 1.0, "need"),
        Rule(r"\b(add|create|implement|build|support|include|allow)\b", 1.0, "action"),
        Rule(r"\bwhen\b.+\bthen\b", 1.0, "when_then"),
        Rule(r"\b(have to|has to|required|require[sd]?|want(s|ed)? (a|an|the|to))\b", 0.75, "need"),
    ],
)

IMPERATIVE_RULES = RuleSet(
    "imperative",
    [
        Rule(
            r"^(?:(?:actually|wait|so|and|also|ok(?:ay)?|please)[,\s]+)*"
            r"(?:let's\s+)?(put|place|move|show|display|make|add|create|build|use|remove|"
            r"hide|change|rename|include|send|store|keep|show)\b",
            1.0,
            "imperative",
        ),
    ],
)

CONDITIONAL_RULES = RuleSet(
    "conditional",
    [
        Rule(r"^(if|when|whenever|once|after|before|given|as soon as)\b", 1.0, "conditional"),
        Rule(r"\b(if|when|whenever|once)\b.+,", 0.5, "conditional"),
    ],
)

# ═══════════════════════════════════════════════════════════
# CONTRADICTION SIGNALS
# ═══════════════════════════════════════════════════════════

CORRECTION_RULES = RuleSet(
    "correction",
    [
        Rule(r"\bactually\b", 1.0, "actually"),
        Rule(r"\bwait\b", 1.0, "wait"),
        Rule(r"\bscratch that\b", 1.0, "scratch_that"),
        Rule(r"\b(on second thought|come to think of it)\b", 1.0, "second_thought"),
        Rule(r"\b(i mean|rather|instead|correction|let me rephrase)\b", 1.0, "rephrase"),
        Rule(r"\b(no,? (let's|make it|put|use)|not \w+ but)\b", 1.0, "negation"),
        Rule(r"\b(changed my mind|forget (that|what i said))\b", 1.0, "changed_mind"),
    ],
)

ADDITIVE_RULES = RuleSet(
    "additive",
    [
        Rule(r"\balso\b", 1.0, "also"),
        Rule(r"\bas well\b", 1.0, "as_well"),
        Rule(r"\bboth\b", 1.0, "both"),
        Rule(r"\b(in addition|additionally)\b", 1.0, "in_addition"),
    ],
)

# ═══════════════════════════════════════════════════════════
# CLARIFICATION
# ═══════════════════════════════════════════════════════════

VAGUE_RULES = RuleSet(
    "vague",
    [
        Rule(r"\bmake (it|this|that|them) (look )?(nice|pretty|better|good|great|cool|modern|clean)\b", 1.0, "styling"),
        Rule(r"\b(user[- ]friendly|intuitive|easy to use|seamless|sleek)\b", 1.0, "usability"),
        Rule(r"\b(fast|quick|snappy|responsive|performant)\b(?![^.]*\b\d+\s*(ms|s|seconds?|milliseconds?)\b)", 1.0, "performance"),
        Rule(r"\b(add|needs?|with|have) (some )?validation\b(?![^.]*\b(required|must|at least|at most|format|characters?|digits?|@|min|max|length|valid)\b)", 1.0, "validation"),
        Rule(r"\bhandle (the )?errors?\b(?![^.]*\b(show|display|retry|log|message)\b)", 1.0, "error_handling"),
        Rule(r"\b(secure|safe)\b(?![^.]*\b(encrypt|https|token|password|2fa|mfa|role)\b)", 1.0, "security"),
        Rule(r"\b(etc\.?|and so on|stuff like that|that kind of thing|whatever)\b", 1.0, "open_list"),
    ],
)

UNCERTAINTY_RULES = RuleSet(
    "uncertainty",
    [
        Rule(r"\b(maybe|perhaps|possibly|probably)\b", 0.15, "maybe"),
        Rule(r"\b(i think|i guess|i suppose|i believe)\b", 0.1, "opinion"),
        Rule(r"\b(not sure|no idea|don't know|dunno|unsure)\b", 0.25, "unsure"),
        Rule(r"\b(kind of|sort of|or something)\b", 0.1, "hedge"),
    ],
)

YES_NO_RULES = RuleSet(
    "yes_no",
    [
        Rule(r"^\s*(yes|yeah|yep|yup|sure|correct|definitely|absolutely|of course)\b", 0.1, "yes"),
        Rule(r"^\s*(no|nope|nah|not really|never)\b", 0.1, "no"),
    ],
)

FOLLOWUP_TRIGGER_RULES = RuleSet(
    "followup_trigger",
    [
        Rule(r"\b(multiple|several|many|a list of|more than one|lots of|unlimited)\b", 1.0, "multiplicity"),
        Rule(r"\b(if|unless|only when|depending on|in case)\b", 1.0, "conditionality"),
        Rule(r"\b(delete|remove|purge|erase|archive|cancel|deactivate)\b", 1.0, "destructive"),
        Rule(r"\b(admins?|administrators?|managers?|roles?|permissions?|only \w+ can|owners?)\b", 1.0, "permission"),
        Rule(r"\b(later|phase 2|phase two|v2|future|eventually|next release|down the road)\b", 1.0, "deferred"),
    ],
)

# ═══════════════════════════════════════════════════════════
# VOICE TRANSCRIPTS
# ═══════════════════════════════════════════════════════════

VOICE_FILLER_RULES = RuleSet(
    "voice_filler",
    [
        Rule(r"\b(um+|uh+|erm+|er|ah+|hmm+|mm+)\b[,]?", 1.0, "pause"),
        Rule(r"(?<=,)\s*like,", 1.0, "discourse"),
        Rule(r"(?<=[\s,])(you know|basically|literally)(?=[\s,.])[,]?", 1.0, "discourse"),
        Rule(r"^(so|well|okay so|ok so|right so)\b[,]?", 1.0, "opener"),
    ],
)

SELF_CORRECTION_RULES = RuleSet(
    "self_correction",
    [
        Rule(r"\bno wait\b", 1.0, "no_wait"),
        Rule(r"\bscratch that\b", 1.0, "scratch_that"),
        Rule(r"\bi mean\b", 1.0, "i_mean"),
        Rule(r"\bsorry\b", 1.0, "sorry"),
        Rule(r"\bactually no\b", 1.0, "actually_no"),
        Rule(r"\blet me rephrase\b", 1.0, "rephrase"),
    ],
)

# ═══════════════════════════════════════════════════════════
# STORY SYNTHESIS
# ═══════════════════════════════════════════════════════════

ROLE_RULES = RuleSet(
    "role",
    [
        Rule(r"\b(admins?|administrators?)\b", 1.0, "admin"),
        Rule(r"\b(managers?|team leads?)\b", 1.0, "manager"),
        Rule(r"\b(customers?|clients?|buyers?|shoppers?)\b", 1.0, "customer"),
        Rule(r"\b(guests?|visitors?|anonymous users?)\b", 1.0, "guest"),
        Rule(r"\b(editors?|authors?|writers?)\b", 1.0, "editor"),
        Rule(r"\b(developers?|engineers?)\b", 1.0, "developer"),
        Rule(r"\b(support agents?|agents?|operators?)\b", 1.0, "support agent"),
        Rule(r"\b(students?|teachers?)\b", 1.0, "student"),
    ],
)
