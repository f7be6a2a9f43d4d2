"""Prompt construction for advisor turns and the synthesis step."""

from typing import Dict, List, Optional, Sequence, Tuple

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from ..models.chat import TranscriptMessage

BRAIN_TRUST_ADDENDUM = """

IMPORTANT: You are participating in a "Brain Trust" discussion with other advisors.
If you see responses from other advisors in the conversation:
- Acknowledge their perspectives where relevant
- Offer your unique viewpoint that adds to or contrasts with what's been said
- Don't simply repeat what others have already covered
- Feel free to respectfully disagree or challenge other advisors' positions
- Build on good ideas from others while adding your own expertise"""

SYNTHESIS_SYSTEM_PROMPT = """You are the Council Synthesizer, responsible for distilling insights from multiple advisors.

Given responses from different advisors, create a synthesis with these sections:

## Points of Agreement
Where advisors align in perspectives or recommendations.

## Key Tensions
Where advisors disagree. Explain tensions without artificially resolving them.

## Recommended Next Steps
Concrete actions accounting for different perspectives.

Guidelines:
- Be concise but comprehensive
- Don't favor any single advisor
- Acknowledge uncertainty
- Focus on actionable insights"""

UNKNOWN_ADVISOR_NAME = "Unknown Advisor"


def build_system_prompt(system_prompt: str, mode: str, addendum_enabled: bool = True) -> str:
    if mode == "brain-trust" and addendum_enabled:
        return system_prompt + BRAIN_TRUST_ADDENDUM
    return system_prompt


def last_user_content(messages: Sequence[TranscriptMessage]) -> str:
    for message in reversed(messages):
        if message.role == "user":
            return message.content
    return ""


def to_langchain_messages(
    messages: Sequence[TranscriptMessage],
    advisor_names: Dict[str, str],
) -> List[BaseMessage]:
    """Convert a transcript into chat messages.

    Replies from other advisors are labeled with the advisor's name so the
    current persona can tell the voices apart.
    """
    converted: List[BaseMessage] = []
    for message in messages:
        if message.role == "user":
            converted.append(HumanMessage(content=message.content))
        elif message.role == "advisor":
            name = advisor_names.get(message.advisor_id or "", UNKNOWN_ADVISOR_NAME)
            converted.append(AIMessage(content=f"[{name}]\n{message.content}"))
        else:
            converted.append(AIMessage(content=message.content))
    return converted


def advisor_responses(
    messages: Sequence[TranscriptMessage],
    advisor_names: Dict[str, str],
) -> List[Tuple[str, str]]:
    """(advisor name, reply) pairs in transcript order."""
    return [
        (advisor_names.get(message.advisor_id or "", UNKNOWN_ADVISOR_NAME), message.content)
        for message in messages
        if message.role == "advisor"
    ]


def build_synthesis_prompt(question: str, responses: Sequence[Tuple[str, str]]) -> str:
    sections = "\n\n".join(f"### {name}\n{content}" for name, content in responses)
    return (
        "Here is the user's question:\n\n"
        f'"{question}"\n\n'
        "Here are the responses from the advisors:\n\n"
        f"{sections}\n\n"
        "Please synthesize these perspectives into a cohesive summary following your guidelines."
    )


def conversation_title(question: Optional[str]) -> str:
    return (question or "").strip()[:100] or "New Conversation"
