"""
Shared Anthropic client for the Claude-backed helpers (email parsing,
extraordinary-circumstances analysis).

The client is created lazily from ANTHROPIC_API_KEY. Without a key every
caller gets None and uses its own non-LLM fallback.
"""

import json
import os
import re
import threading

from anthropic import Anthropic


DEFAULT_MODEL = "claude-haiku-4-5-20251001"

_client_lock = threading.Lock()
_client = None
_client_key = None


def get_model():
    return os.environ.get("ANTHROPIC_MODEL", DEFAULT_MODEL)


def get_anthropic_client():
    """Return a cached Anthropic client, or None when no API key is configured."""
    global _client, _client_key
    api_key = os.environ.get("ANTHROPIC_API_KEY", "")
    if not api_key:
        return None
    with _client_lock:
        if _client is None or _client_key != api_key:
            _client = Anthropic(api_key=api_key)
            _client_key = api_key
        return _client


def reset_client():
    global _client, _client_key
    with _client_lock:
        _client = None
        _client_key = None


def _strip_fences(text):
    text = text.strip()
    fenced = re.match(r"^```(?:json)?\s*(.*?)\s*```$", text, re.DOTALL)
    if fenced:
        return fenced.group(1)
    return text


def ask_claude_json(prompt, max_tokens=1000, system=None):
    """
    Send a single-turn prompt and parse the reply as JSON.

    Raises RuntimeError when no client is configured; json.JSONDecodeError
    and SDK errors propagate to the caller, which owns the fallback.
    """
    client = get_anthropic_client()
    if client is None:
        raise RuntimeError("ANTHROPIC_API_KEY not configured")

    kwargs = {
        "model": get_model(),
        "max_tokens": max_tokens,
        "temperature": 0,
        "messages": [{"role": "user", "content": prompt}],
    }
    if system:
        kwargs["system"] = system

    message = client.messages.create(**kwargs)
    block = message.content[0]
    if getattr(block, "type", "text") != "text":
        raise ValueError("Unexpected response format from Claude")
    return json.loads(_strip_fences(block.text))
