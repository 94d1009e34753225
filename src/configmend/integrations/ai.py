"""
Configmend EXTERNAL SUGGESTER
-----------------------------
Optional generative-AI fallback, consulted only when no local strategy
produced a suggestion.

Endpoint, key and model come from one read-only SuggesterConfig built at
process start (see SuggesterConfig.from_env). Every transport failure is
logged and turned into "no suggestion"; nothing here raises to the caller.
Suggestions from this module do not come from the indentation search and
always carry confidence LOW. The pipeline replays them before emitting one.
"""

import json
import logging
import os
import re
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from configmend.core.errors import SuggesterError
from configmend.models import Confidence, Suggestion
from configmend.parsers.preprocessor import preprocess

logger = logging.getLogger("configmend.integrations.ai")

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT = 8.0
MAX_TOKENS = 512

ENDPOINT_TEMPLATES = (
    "https://generativelanguage.googleapis.com/v1/models/{model}:generateText",
    "https://generativelanguage.googleapis.com/v1beta2/models/{model}:generateText",
    "https://api.generativeai.google/v1/models/{model}:generateText",
    "https://api.generativeai.google/v1beta2/models/{model}:generateText",
    "https://gemini.googleapis.com/v1/models/{model}:generateText",
)

PROMPT_TEMPLATE = (
    "Input YAML:\n---\n{content}\n---\n\n"
    "Please return a minimal YAML snippet (only the corrected block) that fixes the "
    "syntax/indentation issue. Include no extra commentary. Respond in YAML only."
)

_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*\s*\n(.*?)\n?```\s*$", re.DOTALL)


@dataclass(frozen=True)
class SuggesterConfig:
    endpoint: str = ""
    api_key: str = ""
    model: str = DEFAULT_MODEL
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SuggesterConfig":
        """Reads GEMINI_ENDPOINT, GEMINI_API_KEY (or GOOGLE_API_KEY) and GEMINI_MODEL once."""
        env = os.environ if environ is None else environ
        api_key = env.get("GEMINI_API_KEY", env.get("GOOGLE_API_KEY", ""))
        return cls(
            endpoint=env.get("GEMINI_ENDPOINT", "").strip(),
            api_key=api_key.strip(),
            model=env.get("GEMINI_MODEL", DEFAULT_MODEL).strip() or DEFAULT_MODEL,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


class ExternalSuggester:
    """HTTP client for the generative suggestion service (urllib, JSON over POST)."""

    def __init__(self, config: SuggesterConfig):
        self.config = config

    def suggest(self, document_text: str) -> Optional[Suggestion]:
        if not self.config.enabled:
            logger.info("External suggester: no API key configured, skipping")
            return None

        prompt = PROMPT_TEMPLATE.format(content=document_text)

        # Explicit endpoint: one bearer-auth attempt with the legacy payload
        if self.config.endpoint:
            try:
                body = self._post(self.config.endpoint, self._payloads(prompt)[0], key_in_query=False)
            except SuggesterError as e:
                logger.warning(f"External suggester: {self.config.endpoint} failed: {e}")
            else:
                text = body.strip()
                if text:
                    return self._to_suggestion(document_text, text)

        for template in ENDPOINT_TEMPLATES:
            url = template.format(model=self.config.model)
            for payload in self._payloads(prompt):
                try:
                    body = self._post(url, payload, key_in_query=False)
                except SuggesterError:
                    try:
                        body = self._post(url, payload, key_in_query=True)
                    except SuggesterError as e:
                        logger.debug(f"External suggester: endpoint {url} failed: {e}")
                        continue

                text = extract_text(body)
                if text:
                    return self._to_suggestion(document_text, text)

        logger.info("External suggester: no endpoint returned a snippet")
        return None

    # -----------------------------------------------------------------------
    # Transport
    # -----------------------------------------------------------------------

    def _payloads(self, prompt: str) -> List[Dict[str, Any]]:
        return [
            {"model": self.config.model, "prompt": prompt, "max_tokens": MAX_TOKENS},
            {"input": prompt, "maxOutputTokens": MAX_TOKENS},
            {"prompt": prompt, "maxOutputTokens": MAX_TOKENS},
        ]

    def _post(self, url: str, payload: Dict[str, Any], key_in_query: bool) -> str:
        headers = {"Content-Type": "application/json"}
        if key_in_query:
            separator = "&" if "?" in url else "?"
            url = f"{url}{separator}key={urllib.parse.quote(self.config.api_key)}"
        else:
            headers["Authorization"] = f"Bearer {self.config.api_key}"

        req = urllib.request.Request(
            url,
            data=json.dumps(payload).encode("utf-8"),
            headers=headers,
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self.config.timeout) as response:
                return response.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as e:
            raise SuggesterError(f"status {e.code}: {e.reason}") from e
        except (urllib.error.URLError, OSError) as e:
            raise SuggesterError(str(e)) from e

    def _to_suggestion(self, document_text: str, snippet: str) -> Suggestion:
        snippet = strip_fences(snippet)
        snippet_lines = snippet.split("\n")

        start = 1
        first_line = snippet_lines[0]
        for number, line in enumerate(preprocess(document_text).split("\n"), start=1):
            if first_line in line:
                start = number
                break

        return Suggestion(
            description="AI suggested fix (Gemini)",
            confidence=Confidence.LOW,
            snippet=snippet,
            start_line=start,
            end_line=start + len(snippet_lines) - 1,
            strategy="external",
        )


# ============================================================================
# RESPONSE PARSING
# ============================================================================

def extract_text(body: str) -> str:
    """
    Pulls the generated text out of a response body:
    candidates[0].{content,output,text,message}, then top-level output/text,
    then the raw body itself.
    """
    body = body.strip()
    if not body:
        return ""

    try:
        parsed = json.loads(body)
    except ValueError:
        return body

    if isinstance(parsed, dict):
        candidates = parsed.get("candidates")
        if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
            for key in ("content", "output", "text", "message"):
                value = candidates[0].get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
        for key in ("output", "text"):
            value = parsed.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return body


def strip_fences(text: str) -> str:
    """Removes a surrounding markdown code fence (```yaml ... ```)."""
    text = text.strip()
    match = _FENCE_RE.match(text)
    if match:
        return match.group(1).strip("\n")
    return text
