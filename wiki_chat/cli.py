"""Terminal client (``wiki-chat``).

Collect Wikipedia articles into an in-memory library and ask questions that
are answered through the relay server.
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence, TextIO

from wiki_chat.client.relay_client import RelayClient
from wiki_chat.config.settings import settings
from wiki_chat.domain.conversation import ConversationMessage, QueryPhase, QueryState
from wiki_chat.domain.exceptions import BusinessError
from wiki_chat.flows.orchestrator import QueryOrchestrator
from wiki_chat.wikipedia.client import WikipediaClient
from wiki_chat.wikipedia.library import ArticleLibrary


PHASE_LABELS = {
    QueryPhase.EXTRACTING: "Extracting keywords...",
    QueryPhase.SEARCHING: "Searching Wikipedia...",
}

CHAT_HELP = """Commands:
  /add TITLE       add a Wikipedia article to the library
  /list [TERM]     list library articles, optionally filtered
  /show ID         show one article as JSON
  /rm ID           remove an article
  /local QUESTION  answer from library articles only
  /quit            exit
Anything else is asked as a question."""


class ConsoleRenderer:
    """Writes orchestrator progress to a terminal."""

    def __init__(self, out: TextIO = sys.stdout, err: TextIO = sys.stderr):
        self._out = out
        self._err = err
        self._streamed = False

    def on_update(self, state: QueryState, delta: Optional[str]) -> None:
        if delta is not None:
            self._streamed = True
            self._out.write(delta)
            self._out.flush()
            return
        label = PHASE_LABELS.get(state.phase)
        if label:
            print(label, file=self._err)
        elif state.phase == QueryPhase.STREAMING and state.articles:
            titles = ", ".join(a.title for a in state.articles)
            print(f"Sources: {titles}", file=self._err)

    def finish(self, message: ConversationMessage) -> None:
        if message.role == "error":
            print(f"\n[error] {message.content}", file=self._out)
            self._streamed = False
            return
        if self._streamed:
            self._out.write("\n")
        else:
            print(message.content, file=self._out)
        self._streamed = False
        if message.articles_used is not None:
            n = message.articles_used
            print(f"Used {n} article{'' if n == 1 else 's'}", file=self._err)


def _build(relay_url: Optional[str], renderer: ConsoleRenderer):
    wiki = WikipediaClient()
    relay = RelayClient(base_url=relay_url)
    orchestrator = QueryOrchestrator(relay, wiki, on_update=renderer.on_update)
    return wiki, orchestrator


def cmd_ask(args: argparse.Namespace) -> int:
    renderer = ConsoleRenderer()
    _, orchestrator = _build(args.relay_url, renderer)
    message = orchestrator.ask(" ".join(args.question))
    renderer.finish(message)
    return 1 if message.role == "error" else 0


def cmd_lookup(args: argparse.Namespace) -> int:
    articles = WikipediaClient().lookup(" ".join(args.query), args.limit)
    if not articles:
        print("No articles found.")
        return 1
    for article in articles:
        print(f"# {article.title}\n{article.extract}\n{article.url}\n")
    return 0


def cmd_chat(args: argparse.Namespace) -> int:
    renderer = ConsoleRenderer()
    wiki, orchestrator = _build(args.relay_url, renderer)
    library = ArticleLibrary(wiki)
    print(CHAT_HELP)
    while True:
        try:
            line = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return 0
        if not line:
            continue
        command, _, rest = line.partition(" ")
        rest = rest.strip()
        try:
            if command in ("/quit", "/exit"):
                return 0
            if command == "/help":
                print(CHAT_HELP)
            elif command == "/add":
                entry = library.add(rest)
                print(f"[{entry.id}] {entry.article.title}")
            elif command == "/list":
                entries = library.filter(rest)
                for entry in entries:
                    print(f"[{entry.id}] {entry.article.title}  {entry.article.url}")
                print(f"{len(entries)} of {len(library)} articles")
            elif command == "/show":
                print(library.to_json(int(rest)))
            elif command == "/rm":
                print("removed" if library.remove(int(rest)) else "no such article")
            elif command == "/local":
                renderer.finish(orchestrator.ask_with_articles(rest, library.find_relevant(rest)))
            else:
                renderer.finish(orchestrator.ask(line))
        except BusinessError as e:
            print(f"[error] {e.message}")
        except ValueError:
            print("[error] expected a numeric article id")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wiki-chat", description="Ask questions grounded in Wikipedia")
    parser.add_argument("--relay-url", default=None, help=f"Relay server URL (default {settings.relay_url})")
    sub = parser.add_subparsers(dest="command", required=True)

    ask = sub.add_parser("ask", help="Ask one question and stream the answer")
    ask.add_argument("question", nargs="+")
    ask.set_defaults(func=cmd_ask)

    lookup = sub.add_parser("lookup", help="Search Wikipedia and print article summaries")
    lookup.add_argument("query", nargs="+")
    lookup.add_argument("--limit", type=int, default=settings.wikipedia_search_limit)
    lookup.set_defaults(func=cmd_lookup)

    chat = sub.add_parser("chat", help="Interactive session with an article library")
    chat.set_defaults(func=cmd_chat)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except BusinessError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
