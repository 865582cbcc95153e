"""
Neighborhood matching through an OpenAI-compatible chat completions API.

The completion call is a plain async function (messages in, text out) so
the matcher can be driven by any provider, or by a stub in tests.
"""

import re
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import aiohttp

from this_that.config import OpenAIConfig
from this_that.providers.base import ProviderError
from this_that.src.normalizer import normalize_results, dedupe_results, MAX_RESULTS

logger = logging.getLogger(__name__)

Messages = List[Dict[str, str]]
CompletionFn = Callable[[Messages], Awaitable[str]]


class OpenAIChatClient:
    """Thin aiohttp client for /chat/completions."""

    def __init__(self, config: OpenAIConfig, timeout: float = 30.0, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self.timeout = timeout
        self.session = session

    async def complete(self, messages: Messages) -> str:
        """Return the first choice's message content.

        Raises:
            ProviderError: network failure, non-2xx status or a response without choices
        """
        headers = {"Authorization": f"Bearer {self.config.api_key}", "Content-Type": "application/json"}
        payload = {
            "model": self.config.model,
            "messages": messages,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "response_format": {"type": "json_object"},
        }

        session = self.session or aiohttp.ClientSession()
        try:
            async with session.post(
                self.config.chat_url,
                json=payload,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as resp:
                if resp.status >= 300:
                    body = await resp.text()
                    raise ProviderError(
                        f"completion API returned status {resp.status}: {body[:200]}",
                        provider_name="openai",
                        status=resp.status,
                    )
                data = await resp.json(content_type=None)
        except aiohttp.ClientError as e:
            raise ProviderError(f"completion API request failed: {e}", provider_name="openai")
        finally:
            if not self.session:
                await session.close()

        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError):
            raise ProviderError("completion API response had no choices", provider_name="openai")


# --- model output -----------------------------------------------------------

@dataclass
class MatchesParsed:
    candidates: List[Any]


@dataclass
class ParseFailure:
    reason: str
    raw: str = ""


ModelResponse = Union[MatchesParsed, ParseFailure]

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)


def strip_code_fences(text: str) -> str:
    text = (text or "").strip()
    m = _FENCE_RE.match(text)
    return m.group(1).strip() if m else text


def parse_model_output(raw: str) -> ModelResponse:
    """Parse free-text model output into a candidate list. Never raises."""
    body = strip_code_fences(raw)
    if not body:
        return ParseFailure("empty response", raw or "")
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        return ParseFailure(f"invalid JSON: {e}", raw)
    if isinstance(data, dict):
        data = data.get("results", data.get("matches"))
    if not isinstance(data, list):
        return ParseFailure("no results array", raw)
    return MatchesParsed(data)


# --- prompts ----------------------------------------------------------------

SYSTEM_PROMPT = (
    "You are a well-travelled local guide. You match neighborhoods across cities by vibe, "
    "architecture, food scene, nightlife and who lives there. Respond with JSON only."
)

SCHEMA_HINT = (
    '{"results": [{"rank": 1, "match": "neighborhood name", "city": "city", "region": "state or country", '
    '"blurb": "one or two sentences on why it feels similar", '
    '"whatMakesItSpecial": ["3 to 5 short bullets"], '
    '"landmarks": [{"name": "landmark", "why": "why it matters"}, "exactly 3 landmarks"], '
    '"tags": ["3 to 6 short tags"], "score": 0.0}]}'
)


def build_match_messages(place: str, region: str, exclude: Optional[List[str]] = None) -> Messages:
    lines = [
        f'Find the neighborhoods in "{region}" that feel most like "{place}".',
        "Return exactly 3 candidates ranked 1 to 3, best first.",
        "Each candidate needs: rank, match, city, region, blurb, whatMakesItSpecial (3-5 items), "
        "landmarks (exactly 3, each with name and why), tags (3-6 items) and score (0 to 1).",
        f"Return strict JSON matching this shape: {SCHEMA_HINT}",
        "No markdown, no commentary.",
    ]
    if exclude:
        lines.insert(2, "Do not suggest any of these, they are already chosen: " + "; ".join(exclude) + ".")
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "\n".join(lines)},
    ]


def build_simple_messages(place: str, region: str) -> Messages:
    return [
        {"role": "system", "content": "Respond with JSON only."},
        {
            "role": "user",
            "content": (
                f'List 3 neighborhoods in "{region}" similar to "{place}". '
                'Return {"results": [{"match": "...", "city": "...", "region": "...", "blurb": "..."}]}.'
            ),
        },
    ]


# --- retry state machine ----------------------------------------------------

class MatchState(Enum):
    FIRST_ATTEMPT = "first_attempt"
    RETRY = "retry"
    TOP_UP = "top_up"
    DONE = "done"


MAX_UPSTREAM_CALLS = 2


@dataclass
class MatchOutcome:
    results: List[Dict[str, Any]]
    calls: int = 0
    states: List[MatchState] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)


def next_state(state: MatchState, result_count: int) -> MatchState:
    """Transition after an upstream call.

    FIRST_ATTEMPT goes to RETRY on zero results, TOP_UP on fewer than three
    and DONE otherwise. RETRY and TOP_UP always finish.
    """
    if state is MatchState.FIRST_ATTEMPT:
        if result_count == 0:
            return MatchState.RETRY
        if result_count < MAX_RESULTS:
            return MatchState.TOP_UP
    return MatchState.DONE


class MatchRequester:
    """Ask the model for similar neighborhoods, with one retry or top-up pass."""

    def __init__(self, complete: CompletionFn):
        self.complete = complete

    def _messages_for(self, state: MatchState, place: str, region: str, found: List[Dict[str, Any]]) -> Messages:
        if state is MatchState.RETRY:
            return build_simple_messages(place, region)
        if state is MatchState.TOP_UP:
            names = [", ".join(p for p in (r["match"], r["city"]) if p) for r in found]
            return build_match_messages(place, region, exclude=names)
        return build_match_messages(place, region)

    async def request_matches(self, place: str, region: str) -> MatchOutcome:
        outcome = MatchOutcome(results=[])
        state = MatchState.FIRST_ATTEMPT

        while state is not MatchState.DONE and outcome.calls < MAX_UPSTREAM_CALLS:
            outcome.states.append(state)
            messages = self._messages_for(state, place, region, outcome.results)
            raw = await self.complete(messages)
            outcome.calls += 1

            parsed = parse_model_output(raw)
            if isinstance(parsed, ParseFailure):
                logger.warning(f"model output unusable ({state.value}): {parsed.reason}")
                outcome.failures.append(parsed.reason)
                batch: List[Dict[str, Any]] = []
            elif isinstance(parsed, MatchesParsed):
                batch = normalize_results(parsed.candidates, limit=None)
            else:
                raise TypeError(f"unexpected model response {parsed!r}")

            outcome.results = dedupe_results(outcome.results + batch)
            state = next_state(state, len(outcome.results))

        logger.info(
            f"matched {place!r} -> {region!r}: {len(outcome.results)} results in {outcome.calls} call(s)"
        )
        return outcome
