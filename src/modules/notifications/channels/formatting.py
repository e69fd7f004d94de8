"""Message rendering shared by the reference channel adapters."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from modules.notifications.constants import NotificationPriority

PRIORITY_MARKERS = {
    NotificationPriority.LOW: "💡",
    NotificationPriority.MEDIUM: "⚠️",
    NotificationPriority.HIGH: "🔥",
    NotificationPriority.CRITICAL: "🚨",
}


def _priority(value: Any) -> NotificationPriority:
    try:
        return NotificationPriority(value)
    except ValueError:
        return NotificationPriority.MEDIUM


def render_telegram_message(
    title: str,
    message: str,
    priority: Any,
    data: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
) -> str:
    """Markdown chat message: marker + bold title, body, details, footer."""
    level = _priority(priority)
    now = now or datetime.now(timezone.utc)
    lines = [f"{PRIORITY_MARKERS[level]} *{title}*", "", message, ""]
    if data:
        lines.append("📊 *Details:*")
        lines.extend(f"• {key}: {value}" for key, value in data.items())
        lines.append("")
    lines.append(f"⏰ {now:%Y-%m-%d %H:%M:%S} UTC")
    lines.append(f"🏷️ Priority: {level.value}")
    return "\n".join(lines)


def render_email_subject(title: str, priority: Any) -> str:
    return f"[{_priority(priority).value}] {title}"


def render_email_body(
    title: str,
    message: str,
    data: Optional[Mapping[str, Any]] = None,
    greeting_name: Optional[str] = None,
) -> str:
    lines = [f"Hello, {greeting_name or 'Admin'}!", "", title, "", message]
    if data:
        lines.extend(["", "Additional information:"])
        lines.extend(f"  {key}: {value}" for key, value in data.items())
    return "\n".join(lines)
