"""Print the notification center for a signed-in user.

Usage:
    python scripts/notification_center.py --token <jwt> [--feed notifications] [--tab archived]
    python scripts/notification_center.py --token <jwt> --watch

With --watch the live channel stays open and the view is reprinted on every
change until interrupted.
"""

import argparse
import asyncio

from buildtrack.client import (
    ActivityFeedController,
    AppNotificationController,
    HttpNotificationBackend,
    NotificationCenterView,
    render_text,
)
from buildtrack.core.config import settings


async def run(args: argparse.Namespace) -> None:
    backend = HttpNotificationBackend(args.url, args.token)
    controller_cls = (
        AppNotificationController if args.feed == "notifications" else ActivityFeedController
    )
    try:
        async with controller_cls(backend) as controller:
            view = NotificationCenterView(controller, args.tab)
            print(render_text(view.build()))
            for notice in controller.notices.notices:
                print(f"! {notice.title}: {notice.description}")
            while args.watch:
                await asyncio.sleep(args.interval)
                print()
                print(render_text(view.build()))
    finally:
        await backend.close()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--url", default=settings.BACKEND_URL)
    parser.add_argument("--token", required=True)
    parser.add_argument("--feed", choices=["activity", "notifications"], default="activity")
    parser.add_argument("--tab", choices=["inbox", "archived", "rules"], default="inbox")
    parser.add_argument("--watch", action="store_true")
    parser.add_argument("--interval", type=float, default=5.0)
    asyncio.run(run(parser.parse_args()))


if __name__ == "__main__":
    main()
