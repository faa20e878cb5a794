"""Handle the attendance buttons on announcement and reminder messages."""

from typing import Any, Dict, List, Optional

import structlog
from slack_sdk.errors import SlackApiError

from ...attendance.refresh import refresh_blocks
from ...attendance.service import AttendanceService
from ...exceptions import StorageError
from ...storage.attendance import AttendanceStatus, AttendanceStore

logger = structlog.get_logger()


def _get_deps(context: dict) -> Dict[str, Any]:
    """Get dependencies from context."""
    return context.get("deps", {})


def _split_keys(value: str) -> List[str]:
    return [key.strip() for key in (value or "").split(",") if key.strip()]


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


async def refresh_message_attendance(
    client: Any,
    attendance: AttendanceService,
    channel_id: str,
    message_ts: str,
    keys: List[str],
) -> bool:
    """Re-render the attendance lines of ``keys`` on a posted message."""
    if not keys:
        return False

    by_key = await attendance.attendance_by_key(keys)
    history = await client.conversations_history(
        channel=channel_id, latest=message_ts, limit=1, inclusive=True
    )
    messages = history.get("messages") or []
    if not messages or not messages[0].get("blocks"):
        logger.warning(
            "Original message not found", channel_id=channel_id, ts=message_ts
        )
        return False

    blocks = refresh_blocks(messages[0]["blocks"], by_key)
    await client.chat_update(
        channel=channel_id,
        ts=message_ts,
        blocks=blocks,
        text="Meeting attendance updated",
    )
    logger.info("Message attendance refreshed", ts=message_ts, keys=len(keys))
    return True


async def _handle(
    body: dict,
    action: dict,
    client: Any,
    context: dict,
    status: AttendanceStatus,
    confirmation: str,
    multiple: bool,
) -> None:
    user_id = (body.get("user") or {}).get("id")
    value = (action or {}).get("value", "")
    if not user_id or not value:
        return

    channel_id: Optional[str] = (body.get("channel") or {}).get("id")
    message_ts: Optional[str] = (body.get("message") or {}).get("ts")
    keys = _split_keys(value) if multiple else [value]

    deps = _get_deps(context)
    store: AttendanceStore = deps["attendance_store"]
    attendance: AttendanceService = deps["attendance"]

    logger.info(
        "Processing attendance",
        user_id=user_id,
        action_id=action.get("action_id"),
        status=status.value,
        keys=len(keys),
    )

    try:
        await store.record_many((key, user_id, status) for key in keys)
        if channel_id and message_ts:
            await refresh_message_attendance(
                client, attendance, channel_id, message_ts, keys
            )
        if channel_id:
            await client.chat_postEphemeral(
                channel=channel_id,
                user=user_id,
                text=confirmation.format(count=len(keys), s=_plural(len(keys))),
            )
    except (SlackApiError, StorageError) as e:
        logger.error(
            "Error updating attendance",
            user_id=user_id,
            keys=keys,
            error=str(e),
        )


async def handle_attending(ack, body, action, client, context) -> None:
    await ack()
    await _handle(
        body,
        action,
        client,
        context,
        AttendanceStatus.ATTENDING,
        "✅ You marked yourself as attending!",
        multiple=False,
    )


async def handle_not_attending(ack, body, action, client, context) -> None:
    await ack()
    await _handle(
        body,
        action,
        client,
        context,
        AttendanceStatus.NOT_ATTENDING,
        "❌ You marked yourself as not attending.",
        multiple=False,
    )


async def handle_attending_all(ack, body, action, client, context) -> None:
    await ack()
    await _handle(
        body,
        action,
        client,
        context,
        AttendanceStatus.ATTENDING,
        "✅ You marked yourself as attending all {count} meeting{s}!",
        multiple=True,
    )


async def handle_not_attending_any(ack, body, action, client, context) -> None:
    await ack()
    await _handle(
        body,
        action,
        client,
        context,
        AttendanceStatus.NOT_ATTENDING,
        "❌ You marked yourself as not attending all {count} meeting{s}.",
        multiple=True,
    )
