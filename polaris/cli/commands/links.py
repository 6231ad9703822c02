"""Quick link commands for Polaris CLI."""

from typing import TYPE_CHECKING

from polaris.cli.commands.helpers import not_found, records_json, report, resolve_ref

if TYPE_CHECKING:
    from polaris.dashboard import Dashboard


def cmd_links(args, d: "Dashboard") -> int:
    """Handle quick link subcommands."""
    widget = d.links
    links = widget.links()

    if args.links_action == "list":
        if args.json:
            records_json(links)
            return 0
        if not links:
            print("No quick links yet.")
            return 0
        for i, link in enumerate(links, start=1):
            print(f"{i:>3}. {link.get('title'):<24} {link.get('url')}")
        return 0

    if args.links_action == "add":
        link = widget.add(args.url, title=args.title)
        if link is None:
            return report(widget)
        print(f"Added link: {link.get('title')} ({link.get('url')})")
        return 0

    link = resolve_ref(links, args.ref)
    if link is None:
        return not_found("link", args.ref)

    if args.links_action == "rm":
        widget.remove(link.id)
        print(f"Removed link: {link.get('title')}")
    return 0
