"""Provider registry and wire-format handlers.

A provider is selected by model id; its profile names one of a closed set
of wire formats. Each format knows how to build a request body and auth
headers, and how to pull the reply text out of the response envelope.
"""

import json
from typing import Any

from config import DEFAULT_MAX_TOKENS
from models import ProviderProfile

SYSTEM_MESSAGE = "You are a senior code reviewer."


# ---------------------------------------------------------------------------
# Wire formats
# ---------------------------------------------------------------------------
class ChatCompletionsFormat:
    """OpenAI-style ``/chat/completions`` with a bearer token."""

    name = "chat-completions"
    relay_path = "/v1/chat/completions"

    def build_body(self, model: str, prompt: str, max_tokens: int) -> dict:
        return {
            "model": model,
            "messages": [
                {"role": "system", "content": SYSTEM_MESSAGE},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0,
            "max_tokens": max_tokens,
        }

    def auth_headers(self, profile: ProviderProfile, credential: str) -> dict:
        return {profile.auth_header_name: f"Bearer {credential}"}

    def extract_text(self, envelope: Any) -> str:
        """Reply text at ``choices[0].message.content``, else ``data``."""
        if isinstance(envelope, str):
            return envelope
        if isinstance(envelope, dict):
            try:
                content = envelope["choices"][0]["message"]["content"]
            except (KeyError, IndexError, TypeError):
                content = None
            if isinstance(content, str) and content:
                return content
            data = envelope.get("data")
            if isinstance(data, str) and data:
                return data
        return json.dumps(envelope, ensure_ascii=False)


class MessagesFormat:
    """Anthropic-style ``/messages`` with a raw API-key header."""

    name = "messages"
    relay_path = "/v1/messages"
    api_version = "2023-06-01"

    def build_body(self, model: str, prompt: str, max_tokens: int) -> dict:
        return {
            "model": model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }

    def auth_headers(self, profile: ProviderProfile, credential: str) -> dict:
        return {
            profile.auth_header_name: credential,
            "anthropic-version": self.api_version,
        }

    def extract_text(self, envelope: Any) -> str:
        """Reply text at ``content[0].text``."""
        if isinstance(envelope, str):
            return envelope
        if isinstance(envelope, dict):
            try:
                text = envelope["content"][0]["text"]
            except (KeyError, IndexError, TypeError):
                text = None
            if isinstance(text, str) and text:
                return text
        return json.dumps(envelope, ensure_ascii=False)


WIRE_FORMATS = {
    ChatCompletionsFormat.name: ChatCompletionsFormat(),
    MessagesFormat.name: MessagesFormat(),
}


def wire_format_for(profile: ProviderProfile):
    """Return the handler for *profile*'s wire format."""
    return WIRE_FORMATS[profile.wire_format]


# ---------------------------------------------------------------------------
# Built-in providers
# ---------------------------------------------------------------------------
PROVIDERS: dict[str, ProviderProfile] = {
    profile.provider_id: profile
    for profile in (
        ProviderProfile(
            provider_id="deepseek-chat",
            name="DeepSeek Chat",
            vendor="DeepSeek",
            description="Chat model tuned for code review",
            wire_format="chat-completions",
            endpoint_candidates=("https://api.deepseek.com/v1/chat/completions",),
            max_tokens=32768,
            supports_direct=False,
        ),
        ProviderProfile(
            provider_id="gpt-4",
            name="GPT-4",
            vendor="OpenAI",
            description="General-purpose language model",
            wire_format="chat-completions",
            endpoint_candidates=("https://api.openai.com/v1/chat/completions",),
            max_tokens=8192,
            supports_direct=False,
        ),
        ProviderProfile(
            provider_id="claude-3-sonnet",
            name="Claude 3 Sonnet",
            vendor="Anthropic",
            description="Strong at code understanding and analysis",
            wire_format="messages",
            endpoint_candidates=("https://api.anthropic.com/v1/messages",),
            auth_header_name="x-api-key",
            max_tokens=200000,
            supports_direct=False,
        ),
        ProviderProfile(
            provider_id="kimi-k2",
            name="Kimi K2",
            vendor="Moonshot",
            description="Code analysis with strong Chinese-language support",
            wire_format="chat-completions",
            endpoint_candidates=(
                "https://api.moonshot.cn/v1/chat/completions",
                "https://api.moonshot.ai/v1/chat/completions",
            ),
            max_tokens=200000,
            supports_direct=False,
        ),
        ProviderProfile(
            provider_id="doubao-pro",
            name="Doubao Pro",
            vendor="ByteDance",
            description="Enterprise code review model",
            wire_format="chat-completions",
            endpoint_candidates=("https://api.doubao.com/v1/chat/completions",),
            max_tokens=32768,
            supports_direct=False,
        ),
    )
}


def available_models() -> list[ProviderProfile]:
    """Return the built-in provider profiles in registry order."""
    return list(PROVIDERS.values())


def get_provider(provider_id: str) -> ProviderProfile | None:
    return PROVIDERS.get(provider_id)


def request_max_tokens(profile: ProviderProfile) -> int:
    """Reply budget for one review request."""
    return min(profile.max_tokens, DEFAULT_MAX_TOKENS)
