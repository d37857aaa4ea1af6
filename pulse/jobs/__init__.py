"""
Scheduled Jobs for Traffic Pulse.

- weekly_digest.py: Slack digest of the last complete week, posted through an
  incoming webhook

Environment Requirements:
- SLACK_WEBHOOK_URL: Slack incoming webhook URL in format:
  https://hooks.slack.com/services/xxx/yyy/zzz
  Without it the job returns an error result and posts nothing.

Usage:
    from pulse.jobs import send_weekly_digest

    result = await send_weekly_digest(gateway, settings)
    if not result['success']:
        print(result['error'])
"""

from pulse.jobs.weekly_digest import (
    CATEGORY_LABELS,
    format_digest_blocks,
    send_weekly_digest,
)


__all__ = [
    'CATEGORY_LABELS',
    'format_digest_blocks',
    'send_weekly_digest',
]
