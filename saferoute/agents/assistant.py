"""
SafeRoute – safety assistant agent
Answers personal-safety questions; can look up the hazards currently on the map.
"""

import os
import asyncio
import logging
from openai import OpenAIError
import backoff

from agents import Agent, Runner, ModelSettings, function_tool

from saferoute import config
from saferoute.agents import ingest

log = logging.getLogger(__name__)

FALLBACK_REPLY = "Sorry, I couldn't generate a response."


def nearby_hazards() -> list:
    """
    Slim list of hazards from the most recent live snapshot:
        { "severity": ..., "description": ..., "coordinates": [lon, lat] }
    """
    try:
        records = ingest.latest_snapshot()
    except (OSError, ValueError, KeyError) as exc:
        log.warning("Failed to read hazard snapshot: %s", exc)
        return []
    return [
        {
            "severity": r.get("severity"),
            "description": r.get("description", ""),
            "coordinates": [r.get("longitude"), r.get("latitude")],
        }
        for r in records
    ]


safety_assistant = Agent(
    name="SafetyAssistant",
    instructions=(
        "You are CARE, a personal-safety assistant.\n"
        "Respond in English, briefly and practically.\n"
        "When the user asks about an area or a route you can call "
        "`get_nearby_hazards()` to see reported hazards.\n"
        "If someone is in immediate danger, tell them to contact the emergency services."
    ),
    tools=[function_tool(nearby_hazards, name_override="get_nearby_hazards")],
    model=config.ASSISTANT_MODEL,
    model_settings=ModelSettings(temperature=0.4),
)


@backoff.on_exception(
    backoff.expo, OpenAIError, max_tries=4,
    giveup=lambda e: getattr(e, "status_code", 500) != 429
)
def _call_model_sync(question: str):
    return Runner.run_sync(safety_assistant, question)


def ask(question: str) -> str:
    """
    Assistant reply. Falls back to a fixed apology on:
      − missing / test API key
      − any SDK error (incl. 429 after 4 back-off retries)
    """
    if not question or not question.strip():
        raise ValueError("question is required")

    key = os.getenv("OPENAI_API_KEY", "")
    if not key or key.lower().startswith("test"):
        return FALLBACK_REPLY

    # Runner.run_sync needs an event loop on this thread
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        asyncio.set_event_loop(asyncio.new_event_loop())

    try:
        result = _call_model_sync(question.strip())
        return str(result.final_output)
    except Exception as exc:
        log.warning("Assistant fallback: %s", exc)
        return FALLBACK_REPLY
