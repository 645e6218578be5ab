"""
Text parsing utilities for modelcurl.
"""

from modelcurl.config import Message


def parse_headers_input(headers_text: str) -> list[tuple[str, str]]:
    """
    Parse "Name: value" lines into ordered header pairs.

    Lines without a colon or with a blank name are skipped. Repeated names
    are kept in order.
    """
    headers = []
    for line in (headers_text or "").split("\n"):
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip()
        if key:
            headers.append((key, value.strip()))
    return headers


def format_headers(headers: list[tuple[str, str]]) -> str:
    """Inverse of parse_headers_input, for editing in a textbox."""
    return "\n".join(f"{k}: {v}" for k, v in headers)


def build_messages(prompt: str, system_prompt: str = "") -> list[Message]:
    """Build the conversation for one request: optional system, then user."""
    messages = []
    if system_prompt and system_prompt.strip():
        messages.append(Message(role="system", content=system_prompt))
    messages.append(Message(role="user", content=prompt))
    return messages
