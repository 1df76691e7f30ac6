"""ANALOGENIE - Cognitive Analysis Service

Simple CLI for walking a concept through the three analysis stages.
"""

import argparse
import asyncio
import json
import sys

from analogenie.models.session import new_session
from analogenie.services import prompt_store
from analogenie.services.error_classifier import classify
from analogenie.services.stage_orchestrator import StageOrchestrator
from analogenie.tools import research_dispatcher


def print_options(result) -> None:
    if not result.options:
        print("\n[!] No structured options found; raw response follows.")
        print(result.content)
        return

    if result.type == "domain_selection":
        print(f"\n[*] Domains ({len(result.options)}):")
        for option in result.options:
            print(f"  {option.id}. {option.name}")
    elif result.type == "framework_selection":
        print(f"\n[*] Frameworks ({len(result.options)}):")
        for option in result.options:
            print(f"  {option.id}. {option.title}")
            print(f"     {option.description[:120]}")
    elif result.type == "research_questions":
        print(f"\n[*] Research questions ({len(result.options)}):")
        for option in result.options:
            print(f"  {option.id}. {option.text}")
        if result.top_questions:
            print("\n[*] Top questions:")
            for text in result.top_questions:
                print(f"  - {text}")


async def run_workflow(args: argparse.Namespace) -> int:
    prompt_store.reload_prompts()
    orchestrator = StageOrchestrator(
        on_retry=lambda attempt, error: print(f"  [~] attempt {attempt} failed: {error}; retrying")
    )
    session = new_session()
    print(f"Concept: {args.concept}")
    print(f"Session: {session.id}")
    print("-" * 50)

    result = await orchestrator.submit_concept(session, args.concept)
    print_options(result)

    if args.domain:
        print(f"\n[~] Blending with domain: {args.domain}")
        result = await orchestrator.select_domain(session, args.domain)
        print_options(result)

    if args.finding:
        print("\n[~] Generating hypotheses and research questions...")
        result = await orchestrator.select_finding(session, args.finding)
        print_options(result)

        if args.research:
            questions = result.top_questions or [q.text for q in result.options]
            print(f"\n[~] Sending {len(questions)} questions to {args.research}...")
            payload = await research_dispatcher.dispatch(questions, args.research, session.id)
            print(json.dumps(payload, indent=2))

    return 0


def main():
    parser = argparse.ArgumentParser(description="ANALOGENIE - Cognitive Analysis Service")
    parser.add_argument("concept", help="Concept to analyze (12 words or less)")
    parser.add_argument("--domain", help="Domain to blend with the concept (stage 2)")
    parser.add_argument("--finding", help="Framework to turn into research questions (stage 3)")
    parser.add_argument(
        "--research",
        choices=[p.value for p in research_dispatcher.ResearchProvider],
        help="Send the resulting questions to a research provider",
    )
    args = parser.parse_args()
    if args.finding and not args.domain:
        parser.error("--finding requires --domain")
    if args.research and not args.finding:
        parser.error("--research requires --finding")

    try:
        code = asyncio.run(run_workflow(args))
    except Exception as exc:
        error = classify(exc)
        print(f"\n[x] {error.message} ({error.kind.value}): {error.details}", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
