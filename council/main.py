"""Command-line Brain Trust session against a running Council API."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

from council.brain_trust import (
    Advisor,
    BrainTrust,
    BrainTrustConfig,
    BrainTrustError,
    BrainTrustState,
    CouncilHttpClient,
    Message,
)

logger = logging.getLogger(__name__)


class ConsoleRenderer:
    """Print streamed advisor and synthesis text as state snapshots arrive."""

    def __init__(self, advisors: List[Advisor]):
        self.names = {advisor.id: advisor.name for advisor in advisors}
        self._printed = 0
        self._advisor_id: Optional[str] = None
        self._synthesis_printed = 0

    def __call__(self, state: BrainTrustState) -> None:
        if state.streaming_advisor_id and state.streaming_advisor_id != self._advisor_id:
            self._advisor_id = state.streaming_advisor_id
            self._printed = 0
            print(f"\n\n=== {self.names.get(self._advisor_id, self._advisor_id)} ===")
        if state.streaming_advisor_id:
            print(state.streaming_content[self._printed:], end="", flush=True)
            self._printed = len(state.streaming_content)
        if state.synthesis_content:
            if self._synthesis_printed == 0:
                print("\n\n=== Synthesis ===")
            print(state.synthesis_content[self._synthesis_printed:], end="", flush=True)
            self._synthesis_printed = len(state.synthesis_content)


async def fetch_advisors(client: CouncilHttpClient, persona_ids: List[str]) -> List[Advisor]:
    response = await client.client.get("/api/personas", params={"default_only": not persona_ids})
    response.raise_for_status()
    personas = {item["id"]: item for item in response.json()}
    order = persona_ids or list(personas)
    missing = [persona_id for persona_id in order if persona_id not in personas]
    if missing:
        raise SystemExit(f"Unknown persona(s): {', '.join(missing)}")
    return [
        Advisor(
            id=personas[persona_id]["id"],
            name=personas[persona_id]["name"],
            system_prompt=personas[persona_id].get("system_prompt"),
            model_id=personas[persona_id].get("model_id"),
        )
        for persona_id in order
    ]


async def run(base_url: str, question: str, persona_ids: List[str]) -> int:
    client = CouncilHttpClient(base_url)
    try:
        advisors = await fetch_advisors(client, persona_ids)

        def on_advisor_complete(advisor: Advisor, message: Message) -> None:
            logger.info("%s answered (%s chars)", advisor.name, len(message.content))

        brain_trust = BrainTrust(
            BrainTrustConfig(
                fetch_advisor=client.fetch_advisor,
                fetch_synthesis=client.fetch_synthesis,
                on_advisor_complete=on_advisor_complete,
            )
        )
        brain_trust.subscribe(ConsoleRenderer(advisors))

        try:
            await brain_trust.start(question, advisors)
        except BrainTrustError as e:
            print(f"\n\nBrain Trust failed: {e}", file=sys.stderr)
            return 1
        print(f"\n\nConversation: {client.conversation_id}")
        return 0
    finally:
        await client.aclose()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Ask the council a question")
    parser.add_argument("question", help="Question for the advisors")
    parser.add_argument("--base-url", default="http://localhost:8000", help="Council API base URL")
    parser.add_argument(
        "--persona",
        action="append",
        default=[],
        dest="personas",
        help="Persona id, repeat to set order (default: the default council)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="[%(levelname)s] %(name)s - %(message)s")
    return asyncio.run(run(args.base_url, args.question, args.personas))


if __name__ == "__main__":
    sys.exit(main())
