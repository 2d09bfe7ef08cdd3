"""
VocabRecall command line.

Usage:
    vocabrecall import words.xlsx --name "Week 3"
    vocabrecall list
    vocabrecall practice <topic id>
    vocabrecall delete <topic id>
"""

import argparse
import asyncio
import sys
from typing import List, Optional, Tuple

from .exceptions import ExtractionError
from .extraction import TabularExtractor, import_spreadsheet
from .models import ItemStatus, VocabItem
from .services import DiscoverOutcome, VocabStore, create_enrichment_provider, create_repository
from .utils.logger import setup_logger

PRACTICE_HELP = """Commands:
  reveal WORD            reveal a hidden word
  guess WORD SYNONYM     guess a synonym of a revealed word
  regen WORD             fetch new examples for a word
  show WORD              print a revealed word's details
  stats                  progress counts
  reset                  hide every word again
  quit                   back to the shell"""


def _format_item(item: VocabItem) -> str:
    remaining = item.remaining_synonyms

    def slot(synonym: str) -> str:
        # Unguessed answers stay hidden
        return "?" if synonym in remaining else synonym

    lines = [f"{item.word} [{item.status.value}]"]
    if item.primary_synonym:
        lines.append(f"  synonym 1: {slot(item.primary_synonym)}")
    if item.extra_synonyms:
        lines.append(f"  synonym 2+: {', '.join(slot(s) for s in item.extra_synonyms)}")
    lines.append(f"  synonyms left: {len(remaining)} of {len(item.synonyms)}")
    if item.definition:
        lines.append(f"  definition: {item.definition}")
    if item.meaning:
        lines.append(f"  meaning: {item.meaning}")
    if item.phonetics:
        lines.append(f"  US {item.phonetics.us}  UK {item.phonetics.uk}")
    for example in item.examples or []:
        lines.append(f"  {example.type}: {example.text}")
        if example.translation:
            lines.append(f"    {example.translation}")
    return "\n".join(lines)


def _split_guess(store: VocabStore, text: str) -> Tuple[Optional[VocabItem], str]:
    """
    Split "WORD SYNONYM" input where either part may span several words.

    The longest leading run of words naming a loaded item is the word.
    """
    words = text.split()
    for n in range(len(words) - 1, 0, -1):
        item = store.find_item_by_word(" ".join(words[:n]))
        if item is not None:
            return item, " ".join(words[n:])
    return None, ""


async def cmd_import(store: VocabStore, args: argparse.Namespace) -> int:
    extractor = TabularExtractor(include_definitions=args.with_definitions)
    store.begin_upload()
    try:
        items = import_spreadsheet(args.file, extractor)
    except ExtractionError as e:
        print(f"[ERROR] {e}. Please check the file and upload it again.")
        return 1

    if not items:
        print("No vocabulary found. Make sure the sheet has 'Word' and 'Synonyms' columns.")
        return 0

    topic = store.add_topic(args.name, items)
    print(f"Imported {len(items)} words into '{topic.name}' ({topic.id})")
    return 0


async def cmd_list(store: VocabStore, args: argparse.Namespace) -> int:
    if store.load_error:
        print(f"[ERROR] Could not load topics: {store.load_error}")
        return 1
    if not store.topics:
        print("No topics yet.")
        return 0
    for topic in store.topics:
        mastered = sum(1 for i in topic.items if i.status == ItemStatus.MASTERED)
        print(f"{topic.id}  {topic.name}  ({mastered}/{len(topic.items)} mastered)")
    return 0


async def cmd_delete(store: VocabStore, args: argparse.Namespace) -> int:
    if not store.delete_topic(args.topic_id):
        print(f"Topic {args.topic_id} not found.")
        return 1
    print(f"Deleted {args.topic_id}")
    return 0


async def cmd_practice(store: VocabStore, args: argparse.Namespace) -> int:
    if not store.select_topic(args.topic_id):
        print(f"Topic {args.topic_id} not found.")
        return 1

    topic = store.active_topic
    print(f"{topic.name}: {len(store.items)} words")
    for item in store.items:
        print(f"  {item.word}")
    store.confirm_preview()
    print(PRACTICE_HELP)

    loop = asyncio.get_running_loop()
    while True:
        # input() runs in a thread so enrichment keeps arriving meanwhile
        line = await loop.run_in_executor(None, input, "> ")
        parts = line.strip().split(maxsplit=1)
        if not parts:
            continue
        command = parts[0].lower()
        rest = parts[1] if len(parts) > 1 else ""

        if command in ("quit", "exit", "q"):
            break
        elif command == "stats":
            stats = store.stats
            print(f"discovered {stats.discovered_count}, mastered {stats.mastered_count}, "
                  f"total {stats.total_count}, score {store.score}")
        elif command == "reset":
            store.reset_topic_progress()
            print("Progress reset.")
        elif command in ("reveal", "show", "regen") and rest:
            word = " ".join(rest.split())
            item = store.find_item_by_word(word)
            if command == "reveal":
                outcome = store.discover_word(word)
                print(f"{word}: {outcome.value}")
            elif item is None or item.status == ItemStatus.HIDDEN:
                print(f"{word}: not revealed")
            elif command == "regen":
                store.regenerate_enrichment(item.id)
                print(f"Regenerating examples for {item.word}...")
            else:
                print(_format_item(item))
        elif command == "guess" and rest:
            item, synonym = _split_guess(store, rest)
            if item is None:
                print(f"{rest}: {DiscoverOutcome.NOT_FOUND.value}")
            elif store.guess_synonym(item.id, synonym):
                suffix = " - mastered!" if item.status == ItemStatus.MASTERED else ""
                print(f"Correct ({len(item.user_guesses)}/{len(item.synonyms)}){suffix}")
            elif item.status == ItemStatus.HIDDEN:
                print(f"Reveal {item.word} first.")
            else:
                print("Not a synonym.")
        else:
            print(PRACTICE_HELP)

    store.exit_to_list()
    return 0


COMMANDS = {
    "import": cmd_import,
    "list": cmd_list,
    "delete": cmd_delete,
    "practice": cmd_practice,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vocabrecall", description="Active-recall vocabulary flashcards")
    parser.add_argument("--backend", choices=["json", "sqlite"], help="Storage backend (default: STORAGE_BACKEND)")
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_import = sub.add_parser("import", help="Create a topic from a spreadsheet")
    p_import.add_argument("file")
    p_import.add_argument("--name", required=True)
    p_import.add_argument("--with-definitions", action="store_true",
                          help="Keep the sheet's definition column")

    sub.add_parser("list", help="List topics, newest first")

    p_delete = sub.add_parser("delete", help="Delete a topic")
    p_delete.add_argument("topic_id")

    p_practice = sub.add_parser("practice", help="Practice a topic interactively")
    p_practice.add_argument("topic_id")

    return parser


async def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger(args.log_level)

    enrichment = create_enrichment_provider() if args.command == "practice" else None
    store = VocabStore(create_repository(args.backend), enrichment)
    try:
        await store.load_topics()
        return await COMMANDS[args.command](store, args)
    finally:
        await store.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    try:
        return asyncio.run(run(argv))
    except (KeyboardInterrupt, EOFError):
        print("\n[!] Aborted by user.")
        return 1


if __name__ == "__main__":
    sys.exit(main())
