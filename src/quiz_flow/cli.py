"""
Command-line interface for quiz-flow

Take a quiz in the terminal, check a quiz definition for authoring
problems, or score a saved answer set.
"""

import asyncio
import sys
import argparse
import json
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional

from .config import config
from .controller import QuizRun, Screen
from .engine.matcher import match_result
from .engine.scorer import score
from .quiz.schema import QuizDefinition, Question, QuestionType, lint_definition
from .transport import get_transport, Attribution, DefinitionLoadError, SessionTransport

Ask = Callable[[str], Awaitable[str]]


async def terminal_ask(prompt: str) -> str:
    """Read a line without blocking background session syncs."""
    return await asyncio.to_thread(input, prompt)


async def load_definition(
    source: str,
    transport: Optional[SessionTransport] = None,
    preview: bool = False,
) -> QuizDefinition:
    """
    Load a quiz from a JSON file, or fetch it by id.

    Raises:
        DefinitionLoadError: When the quiz cannot be loaded
    """
    path = Path(source)
    if path.exists() and path.is_file():
        try:
            return QuizDefinition.from_json(path.read_text())
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise DefinitionLoadError(f"Malformed quiz definition in {path}: {e}")

    if transport is None:
        raise DefinitionLoadError(f"No such file: {source}")
    return await transport.fetch_definition(source, preview=preview)


def format_question(run: QuizRun) -> str:
    """Render the current question for the terminal."""
    question = run.current_question
    lines = [
        "",
        f"[{run.navigator.index + 1} / {run.navigator.total}]  {question.text or question.id}"
        + ("" if question.is_required else "  (optional)"),
    ]
    if question.description:
        lines.append(f"  {question.description}")

    if question.is_choice:
        if not question.options:
            lines.append("  (no options configured, press Enter to continue)")
        for i, option in enumerate(question.options, 1):
            selected = run.answers.get(question.id)
            marker = "*" if option.id == selected or (
                isinstance(selected, list) and option.id in selected
            ) else " "
            lines.append(f" {marker}{i}) {option.text or option.id}")
    elif question.question_type == QuestionType.RATING:
        values = question.rating_values()
        lines.append(f"  Rate {values[0]}-{values[-1]}")
    elif question.question_type == QuestionType.NUMBER_INPUT:
        bounds = []
        if question.min_value is not None:
            bounds.append(f"min {question.min_value:g}")
        if question.max_value is not None:
            bounds.append(f"max {question.max_value:g}")
        if bounds:
            lines.append(f"  ({', '.join(bounds)})")

    return "\n".join(lines)


def format_result(run: QuizRun) -> str:
    """Render the result screen."""
    result = run.matched_result
    lines = [
        "",
        "=" * 60,
    ]
    if result is None:
        lines.append("Thanks for completing the quiz!")
    else:
        lines.append(result.title or "Your result")
        if result.description:
            lines.append("")
            lines.append(result.description)
        if result.cta_url:
            lines.append("")
            lines.append(f"{result.cta_text or 'Learn more'}: {result.cta_url}")
    lines.append("=" * 60)
    lines.append(f"Score: {run.total_score}")
    return "\n".join(lines)


def _option_from_input(question: Question, text: str) -> Optional[str]:
    if not text.isdigit():
        return None
    number = int(text)
    if 1 <= number <= len(question.options):
        return question.options[number - 1].id
    return None


async def _ask_lead(run: QuizRun, ask: Ask) -> dict[str, str]:
    data = {}
    for lead_field in run.definition.lead_capture_fields:
        suffix = " *" if lead_field.is_required else ""
        data[lead_field.key] = await ask(f"{lead_field.label}{suffix}: ")
    return data


async def _answer_question(run: QuizRun, ask: Ask, out: Callable[[str], None]) -> None:
    question = run.current_question
    out(format_question(run))
    text = (await ask("> ")).strip()

    if text.lower() == "b":
        run.back()
        return

    if not text:
        if not await run.next():
            out("This question is required.")
        return

    if question.question_type in (QuestionType.SINGLE_CHOICE, QuestionType.IMAGE_CHOICE):
        option_id = _option_from_input(question, text)
        if option_id is None:
            out("Pick one of the listed numbers.")
            return
        await run.select(option_id)

    elif question.question_type == QuestionType.RATING:
        if text not in question.rating_values():
            out("Pick a rating from the scale.")
            return
        await run.select(text)

    elif question.question_type == QuestionType.MULTIPLE_CHOICE:
        chosen = [_option_from_input(question, part.strip()) for part in text.split(",")]
        if not chosen or None in chosen:
            out("Enter option numbers separated by commas.")
            return
        run.set_answer(list(dict.fromkeys(chosen)))
        await run.next()

    elif question.question_type == QuestionType.NUMBER_INPUT:
        try:
            number = float(text)
        except ValueError:
            out("Enter a number.")
            return
        if (question.min_value is not None and number < question.min_value) or (
            question.max_value is not None and number > question.max_value
        ):
            out("That number is out of range.")
            return
        run.set_answer(text)
        await run.next()

    else:
        run.set_answer(text)
        await run.next()


async def play_quiz(
    run: QuizRun,
    ask: Ask = terminal_ask,
    out: Callable[[str], None] = print,
    attribution: Optional[Attribution] = None,
) -> QuizRun:
    """
    Drive a quiz attempt from line-based input.

    Args:
        run: Fresh quiz attempt
        ask: Coroutine returning one line of input for a prompt
        out: Output sink
        attribution: UTM/referrer data for the session

    Returns:
        The finished run
    """
    definition = run.definition

    while True:
        if run.screen == Screen.START:
            out("")
            out(definition.start_headline or definition.name or "Quiz")
            if definition.start_description:
                out(definition.start_description)
            await ask(f"[{definition.start_button_text}] press Enter ")
            await run.start(attribution)

        elif run.screen == Screen.QUESTION:
            await _answer_question(run, ask, out)

        elif run.screen == Screen.LEAD_CAPTURE:
            out("")
            out(definition.lead_capture_heading)
            await run.submit_lead(await _ask_lead(run, ask))
            for message in run.lead_errors.values():
                out(f"  {message}")

        elif run.screen == Screen.RESULT:
            out(format_result(run))
            while run.show_lead_form:
                answer = (await ask("Leave your contact details? [y/N] ")).strip().lower()
                if answer != "y":
                    break
                out(definition.lead_capture_heading)
                if await run.submit_lead(await _ask_lead(run, ask)):
                    out("Thanks, we'll be in touch.")
                for message in run.lead_errors.values():
                    out(f"  {message}")
            break

    await run.wait_idle()
    return run


def main(argv: Optional[list[str]] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="quiz-flow",
        description="Take, check and score branching lead-generation quizzes",
        epilog="Example: quiz-flow play quiz.json --offline"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Play command
    play_parser = subparsers.add_parser("play", help="Take a quiz in the terminal")
    play_parser.add_argument(
        "source",
        help="Quiz JSON file, or quiz id to fetch from the API"
    )
    play_parser.add_argument(
        "--base-url",
        default=config.api.base_url,
        help=f"Quiz API root (default: {config.api.base_url})"
    )
    play_parser.add_argument(
        "--preview",
        action="store_true",
        help="Fetch unpublished quizzes"
    )
    play_parser.add_argument(
        "--offline",
        action="store_true",
        help="Record the session in memory instead of the API"
    )
    play_parser.add_argument(
        "--utm-url",
        help="Landing page URL to take utm_* parameters from"
    )
    play_parser.add_argument(
        "--referrer",
        help="Referrer URL recorded with the session"
    )

    # Lint command
    lint_parser = subparsers.add_parser("lint", help="Check a quiz definition for authoring problems")
    lint_parser.add_argument("source", help="Quiz JSON file")

    # Score command
    score_parser = subparsers.add_parser("score", help="Score a saved answer set")
    score_parser.add_argument("source", help="Quiz JSON file")
    score_parser.add_argument("answers", help="JSON file mapping question id to answer")
    score_parser.add_argument(
        "--json",
        action="store_true",
        help="Output result as JSON"
    )

    # Parse arguments
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "play":
        async def run_play():
            transport_name = "mock" if args.offline else config.tracking.transport
            if transport_name == "http":
                transport = get_transport("http", base_url=args.base_url)
            else:
                transport = get_transport(transport_name)

            try:
                definition = await load_definition(args.source, transport, preview=args.preview)
                tracking = transport if config.tracking.enabled else None
                run = QuizRun(definition, tracking)
                attribution = Attribution.from_url(args.utm_url, args.referrer)
                await play_quiz(run, attribution=attribution)
            finally:
                await transport_close(transport)

        try:
            asyncio.run(run_play())
        except DefinitionLoadError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        except (EOFError, KeyboardInterrupt):
            print("\nAborted", file=sys.stderr)
            sys.exit(1)

    elif args.command == "lint":
        try:
            definition = asyncio.run(load_definition(args.source))
        except DefinitionLoadError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        problems = lint_definition(definition)
        if not problems:
            print(f"{definition.name or definition.id}: no problems found")
            return
        for problem in problems:
            print(f"- {problem}")
        sys.exit(1)

    elif args.command == "score":
        try:
            definition = asyncio.run(load_definition(args.source))
            answers = json.loads(Path(args.answers).read_text())
        except DefinitionLoadError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        except (OSError, ValueError) as e:
            print(f"Error: could not read answers: {e}", file=sys.stderr)
            sys.exit(1)

        total = score(answers, definition.questions)
        result = match_result(definition.results, total)

        if args.json:
            print(json.dumps({
                "score": total,
                "result": result.to_dict() if result else None,
            }, indent=2))
        else:
            print(f"Score: {total}")
            print(f"Result: {(result.title or result.id) if result else '(none)'}")


async def transport_close(transport: Optional[SessionTransport]) -> None:
    if transport is not None:
        await transport.close()


if __name__ == "__main__":
    main()
