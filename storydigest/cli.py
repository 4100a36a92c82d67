"""
Command line interface.

    storydigest new transcript.vtt        # or `-` to read stdin
    storydigest pass2 | pass3 | pass4
    storydigest questions
    storydigest answer "1. name, email 2. sortable by date"
    storydigest generate-stories
    storydigest present | approve | reject "<reason>" | skip
    storydigest finalize [--force]

Every DigestError is reported on stderr with exit code 1.
"""

import argparse
import json
import sys

from pydantic import BaseModel

from storydigest.config import Config
from storydigest.models.clarification import ClarificationQuestion
from storydigest.models.conversation import RecoverySummary
from storydigest.models.story import CriterionEdit, Story, StoryEdit
from storydigest.services.orchestrator import DigestOrchestrator
from storydigest.utils.exceptions import DigestError, StoryValidationError
from storydigest.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

CLAUSES = ("given", "when", "then")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storydigest", description="Digest conversation transcripts into user stories"
    )
    parser.add_argument("--config", help="YAML configuration file (env vars override it)")
    parser.add_argument("--env-file", help=".env file to load")
    parser.add_argument("--state-dir", help="Directory holding session documents")
    parser.add_argument("--session", help="Operate on this session instead of the active one")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--debug", action="store_true", help="Log heuristic degradations")
    sub = parser.add_subparsers(dest="command", required=True)

    new = sub.add_parser("new", help="Create a session from a transcript")
    new.add_argument("input", help="Transcript path, or - for stdin")

    sub.add_parser("pass2", help="Associate statements with topics")
    sub.add_parser("pass3", help="Resolve orphan statements")
    sub.add_parser("pass4", help="Detect and resolve contradictions")
    sub.add_parser("questions", help="Present the next batch of clarification questions")

    answer = sub.add_parser("answer", help="Answer the presented questions")
    answer.add_argument("text", help="Answer text, or - for stdin")
    voice = answer.add_mutually_exclusive_group()
    voice.add_argument("--voice", dest="voice", action="store_true", default=None)
    voice.add_argument("--no-voice", dest="voice", action="store_false")

    sub.add_parser("generate-stories", help="Generate stories from topics")
    stories = sub.add_parser("stories", help="List stories")
    stories.add_argument("story_id", nargs="?", help="Show one story in full")

    edit = sub.add_parser("edit-story", help="Commit an edit session to a story")
    edit.add_argument("story_id")
    edit.add_argument("--role")
    edit.add_argument("--action")
    edit.add_argument("--benefit")
    edit.add_argument("--title")
    edit.add_argument(
        "--add-criterion", nargs=3, action="append", default=[], metavar=("GIVEN", "WHEN", "THEN")
    )
    edit.add_argument(
        "--update-criterion",
        nargs=3,
        action="append",
        default=[],
        metavar=("CRITERION_ID", "CLAUSE", "TEXT"),
    )
    edit.add_argument("--remove-criterion", action="append", default=[], metavar="CRITERION_ID")

    sub.add_parser("present", help="Present the next story for review")
    sub.add_parser("approve", help="Approve the presented story")
    reject = sub.add_parser("reject", help="Reject the presented story")
    reject.add_argument("reason")
    sub.add_parser("skip", help="Skip the presented story for now")
    finalize = sub.add_parser("finalize", help="Hand approved stories to the ready queue")
    finalize.add_argument("--force", action="store_true", help="Finalize with undecided stories")

    sub.add_parser("sessions", help="List sessions")
    switch = sub.add_parser("switch", help="Make another session active")
    switch.add_argument("session_id")
    archive = sub.add_parser("archive", help="Archive a session")
    archive.add_argument("session_id", nargs="?")
    delete = sub.add_parser("delete", help="Delete a session and its documents")
    delete.add_argument("session_id")
    delete.add_argument("--force", action="store_true", help="Confirm deletion")
    sub.add_parser("status", help="Show session progress")
    sub.add_parser("resume", help="Show recovery summary and open questions")
    checkpoint = sub.add_parser("checkpoint", help="Record a named checkpoint")
    checkpoint.add_argument("name")
    return parser


def build_edit(args: argparse.Namespace) -> StoryEdit:
    updates: dict[str, CriterionEdit] = {}
    for criterion_id, clause, text in args.update_criterion:
        if clause not in CLAUSES:
            raise StoryValidationError(
                args.story_id,
                [{"field": f"update_criteria.{criterion_id}", "message": f"unknown clause: {clause}"}],
            )
        edit = updates.setdefault(criterion_id, CriterionEdit(id=criterion_id))
        setattr(edit, clause, text)
    return StoryEdit(
        role=args.role,
        action=args.action,
        benefit=args.benefit,
        title=args.title,
        add_criteria=[CriterionEdit(given=g, when=w, then=t) for g, w, t in args.add_criterion],
        update_criteria=list(updates.values()),
        remove_criteria=args.remove_criterion,
    )


# ═══════════════════════════════════════════════════════════
# RENDERING
# ═══════════════════════════════════════════════════════════


def render_questions(questions: list[ClarificationQuestion]) -> str:
    if not questions:
        return "No pending questions."
    lines = []
    for number, question in enumerate(questions, 1):
        lines.append(f"{number}. [{question.priority.value}] {question.text}")
        for option_number, option in enumerate(question.options, 1):
            lines.append(f"     {option_number}) {option}")
    return "\n".join(lines)


def render_story(story: Story) -> str:
    lines = [
        f"{story.id}: {story.title} ({story.complexity.value}, coverage {story.coverage}%)",
        f"  {story.triple.render()}",
    ]
    for criterion in story.criteria:
        lines.append(f"  - [{criterion.id}] {criterion.render()}")
    for warning in story.validation.warnings:
        lines.append(f"  ! {warning}")
    return "\n".join(lines)


def render_recovery(summary: RecoverySummary) -> str:
    lines = [
        f"Session {summary.session_id} was interrupted while awaiting answers "
        f"({summary.answered_ratio} answered, {summary.pending} pending, "
        f"{summary.elapsed_seconds:.0f}s ago)."
    ]
    for answer in summary.recent_answers:
        lines.append(f"  {answer['question_id']}: {answer['answer']}")
    return "\n".join(lines)


def emit(result, as_json: bool, text: str | None = None) -> None:
    if as_json:
        if isinstance(result, BaseModel):
            payload = result.model_dump(mode="json")
        elif isinstance(result, list):
            payload = [r.model_dump(mode="json") if isinstance(r, BaseModel) else r for r in result]
        else:
            payload = result
        print(json.dumps(payload, indent=2, default=str))
    elif text is not None:
        print(text)


def run(args: argparse.Namespace, orchestrator: DigestOrchestrator) -> None:
    sid = args.session
    command = args.command

    if command == "new":
        result = orchestrator.new(args.input, sys.stdin)
        session = result.session
        emit(
            result,
            args.json,
            f"Session {session.id}: {session.input.source_format.value}, "
            f"language {session.input.language}, {result.statements} statements "
            f"({result.meaningful} meaningful), {result.topics} topics"
            + (f", {result.chunks} chunks" if session.input.chunked else ""),
        )
    elif command == "pass2":
        coverage = orchestrator.pass2(sid)
        emit(
            coverage,
            args.json,
            f"Mapped {coverage.mapped}/{coverage.meaningful} statements "
            f"({coverage.coverage_percentage}%), {coverage.orphans} orphans",
        )
    elif command == "pass3":
        report = orchestrator.pass3(sid)
        emit(
            report,
            args.json,
            f"Orphans: {report.initial_orphans} -> expansion {len(report.resolved_by_expansion)}, "
            f"clustered {len(report.clustered)}, catch-all {len(report.catch_all)}, "
            f"ambiguous {len(report.ambiguous)}; coverage {report.coverage}%",
        )
    elif command == "pass4":
        contradictions = orchestrator.pass4(sid)
        lines = [
            f"{c.id} {c.attribute}: {c.state.value} (confidence {c.confidence})"
            for c in contradictions.contradictions
        ]
        emit(contradictions, args.json, "\n".join(lines) or "No contradictions found.")
    elif command == "questions":
        questions = orchestrator.questions(sid)
        emit(questions, args.json, render_questions(questions))
    elif command == "answer":
        text = sys.stdin.read() if args.text == "-" else args.text
        result = orchestrator.answer(text, args.voice, sid)
        emit(
            result,
            args.json,
            f"Recorded {len(result.answered_ids)} answer(s) via {result.strategy}"
            + (f", {len(result.followup_ids)} follow-up question(s)" if result.followup_ids else "")
            + (". All questions answered." if result.complete else f". {result.pending} pending."),
        )
    elif command == "generate-stories":
        story_set = orchestrator.generate_stories(sid)
        emit(story_set, args.json, "\n\n".join(render_story(s) for s in story_set.stories) or "No stories.")
    elif command == "stories":
        if args.story_id:
            story = orchestrator.story(args.story_id, sid)
            emit(story, args.json, render_story(story))
        else:
            story_set = orchestrator.stories(sid)
            emit(story_set, args.json, "\n".join(
                f"{s.id}: {s.title} ({len(s.criteria)} criteria, coverage {s.coverage}%)"
                for s in story_set.stories
            ) or "No stories.")
    elif command == "edit-story":
        story = orchestrator.edit_story(args.story_id, build_edit(args), sid)
        emit(story, args.json, render_story(story))
    elif command == "present":
        story = orchestrator.present(sid)
        emit(story, args.json, render_story(story) if story else "Every story has been reviewed.")
    elif command == "approve":
        story_id = orchestrator.approve(sid)
        emit({"story_id": story_id, "decision": "approved"}, args.json, f"Approved {story_id}")
    elif command == "reject":
        story_id = orchestrator.reject(args.reason, sid)
        emit({"story_id": story_id, "decision": "rejected"}, args.json, f"Rejected {story_id}")
    elif command == "skip":
        story_id = orchestrator.skip(sid)
        emit({"story_id": story_id, "decision": "skipped"}, args.json, f"Skipped {story_id}")
    elif command == "finalize":
        result = orchestrator.finalize(args.force, sid)
        emit(
            result,
            args.json,
            f"Added {len(result.task_ids)} task(s) to the ready queue"
            + (f"; {len(result.duplicate_story_ids)} already queued" if result.duplicate_story_ids else ""),
        )
    elif command == "sessions":
        entries = orchestrator.list_sessions()
        active = orchestrator.active_session_id()
        emit(entries, args.json, "\n".join(
            f"{'*' if e.session_id == active else ' '} {e.session_id}  {e.status.value:<11} "
            f"{e.phase.value:<24} {e.source}"
            for e in entries
        ) or "No sessions.")
    elif command == "switch":
        session = orchestrator.switch(args.session_id)
        emit(session, args.json, f"Active session: {session.id} ({session.phase.value})")
    elif command == "archive":
        session = orchestrator.archive(args.session_id)
        emit(session, args.json, f"Archived {session.id}")
    elif command == "delete":
        orchestrator.delete(args.session_id, args.force)
        emit({"deleted": args.session_id}, args.json, f"Deleted {args.session_id}")
    elif command == "status":
        report = orchestrator.status(sid)
        session = report.session
        emit(
            report,
            args.json,
            "\n".join(
                [
                    f"Session {session.id} [{session.status.value}] phase {session.phase.value}",
                    f"Coverage {report.coverage.coverage_percentage}% "
                    f"({report.coverage.mapped}/{report.coverage.meaningful}), {report.topics} topics",
                    f"Questions: {report.questions_answered} answered, {report.questions_pending} pending",
                    f"Stories: {report.stories}; review {report.review}",
                ]
            ),
        )
    elif command == "resume":
        summary, open_questions = orchestrator.resume(sid)
        if summary is None:
            emit({"interrupted": False}, args.json, "Session was not interrupted.")
        else:
            orchestrator.recovery = None
            emit(
                {"recovery": summary.model_dump(mode="json"), "questions": [q.model_dump(mode="json") for q in open_questions]},
                args.json,
                render_recovery(summary) + "\n\n" + render_questions(open_questions),
            )
    elif command == "checkpoint":
        checkpoint = orchestrator.checkpoint(args.name, sid)
        emit(checkpoint, args.json, f"Checkpoint '{checkpoint.name}' at {checkpoint.phase}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = Config.from_env_or_yaml(args.config, args.env_file)
    if args.state_dir:
        config.storage.state_dir = args.state_dir
    setup_logging(config.logging, debug=args.debug)

    try:
        orchestrator = DigestOrchestrator(config)
        run(args, orchestrator)
        if orchestrator.recovery is not None and args.command not in ("resume", "answer"):
            print(render_recovery(orchestrator.recovery), file=sys.stderr)
    except StoryValidationError as e:
        print(f"error: {e.message}", file=sys.stderr)
        for error in e.field_errors:
            print(f"  {error['field']}: {error['message']}", file=sys.stderr)
        return 1
    except DigestError as e:
        print(f"error: {e.message}", file=sys.stderr)
        logger.debug(f"{type(e).__name__} context: {e.context}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
