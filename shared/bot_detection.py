"""
Bot detection for tracer clicks — framework-agnostic.

Uses a single fixed pattern of crawler, scanner and link-preview tokens.
Link-preview fetchers (Slack, Discord, WhatsApp, LinkedIn, ...) are the main
source of non-human opens on links sent in emails and chat, so they are
listed by name.

An empty user agent is not treated as a bot: the pattern needs one of the
listed tokens to match.
"""

from __future__ import annotations

import re
from typing import Optional

BOT_UA_PATTERN = re.compile(
    r"\b(bot|crawler|spider|preview|scanner|security|headless|curl|wget"
    r"|slackbot|discordbot|facebookexternalhit|whatsapp|skypeuripreview"
    r"|linkedinbot|googleimageproxy)\b",
    re.IGNORECASE,
)


def is_likely_bot_user_agent(user_agent: Optional[str]) -> bool:
    """Return True if *user_agent* contains a known bot/preview token."""
    if not user_agent:
        return False
    return BOT_UA_PATTERN.search(user_agent) is not None


def get_bot_name(user_agent: Optional[str]) -> Optional[str]:
    """Return the matched bot token (lowercased), or ``None`` for humans."""
    if not user_agent:
        return None
    match = BOT_UA_PATTERN.search(user_agent)
    return match.group(1).lower() if match else None
