from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import sys

from oeee_bridge.client import (
    AuthService,
    OeeeAPIError,
    PushTokenService,
    Settings,
    get_settings,
    open_session,
)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="oeee", description="oeee.cafe session client.")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p = sub.add_parser("login", help="Log in and store the session cookie")
    p.add_argument("login_name")
    p.add_argument("--password", default=None, help="Prompted for if omitted")

    sub.add_parser("logout", help="Log out and clear the stored session")
    sub.add_parser("whoami", help="Show the user the stored session belongs to")

    p = sub.add_parser("search", help="Search users and posts")
    p.add_argument("query")
    p.add_argument("--limit", type=int, default=20)

    p = sub.add_parser("notifications", help="List notifications")
    p.add_argument("--limit", type=int, default=50)
    p.add_argument("--offset", type=int, default=0)

    sub.add_parser("unread", help="Print the unread notification count")
    sub.add_parser("drafts", help="List draft posts")

    p = sub.add_parser("publish", help="Publish a draft post")
    p.add_argument("post_id")
    p.add_argument("--title", default="")
    p.add_argument("--content", default="")
    p.add_argument("--hashtags", default="")
    p.add_argument("--sensitive", action="store_true")
    p.add_argument("--allow-relay", action="store_true")
    p.add_argument("--parent-post-id", default=None)
    return ap


async def run(args: argparse.Namespace, settings: Settings) -> int:
    settings, _store, api = open_session(settings)
    auth = AuthService(api, PushTokenService(api, settings.push_token_file))

    if args.cmd == "login":
        password = args.password if args.password is not None else getpass.getpass("Password: ")
        user = await auth.login(args.login_name, password)
        print(f"Logged in as {user.display_name} (@{user.login_name})")
    elif args.cmd == "logout":
        await auth.logout()
        print("Logged out")
    elif args.cmd == "whoami":
        user = await auth.check_auth_status()
        if user is None:
            print("Not logged in")
            return 1
        print(f"{user.display_name} (@{user.login_name})")
    elif args.cmd == "search":
        res = await api.search(args.query, limit=args.limit)
        for u in res.users:
            print(f"user  @{u.login_name}  {u.display_name}")
        for post in res.posts:
            flag = " [sensitive]" if post.is_sensitive else ""
            print(f"post  {post.id}  {post.image_url}{flag}")
    elif args.cmd == "notifications":
        res = await api.notifications(limit=args.limit, offset=args.offset)
        for n in res.notifications:
            mark = " " if n.is_read else "*"
            kind = n.notification_type.value if n.notification_type else "?"
            print(f"{mark} {n.created_at:%Y-%m-%d %H:%M}  {kind:<14} @{n.actor_handle}")
        if res.has_more:
            print(f"... {res.total} total")
    elif args.cmd == "unread":
        print(await api.unread_notification_count())
    elif args.cmd == "drafts":
        for d in await api.drafts():
            print(f"{d.id}  {d.width}x{d.height}  {d.title or '(untitled)'}")
    elif args.cmd == "publish":
        await api.publish_draft(
            args.post_id,
            args.title,
            args.content,
            hashtags=args.hashtags,
            is_sensitive=args.sensitive,
            allow_relay=args.allow_relay,
            parent_post_id=args.parent_post_id,
        )
        print(f"Published {args.post_id}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(run(args, settings))
    except OeeeAPIError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
