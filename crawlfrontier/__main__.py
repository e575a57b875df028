import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import ConfigError, FrontierConfig
from .frontier import CrawlFrontier, FrontierError, decode_key, encode_key
from .models import UrlRecord
from .url_tools import canonicalize

logger = logging.getLogger(__name__)

MAX_PRIORITY = 255


def describe_key(record: UrlRecord) -> str:
    """Render a record's stored sort key as "priority/depth/docid"."""
    priority, depth, docid = decode_key(encode_key(record))
    return f"{priority}/{depth}/{docid}"


def _priority(value: str) -> int:
    priority = int(value)
    if not 0 <= priority <= MAX_PRIORITY:
        raise argparse.ArgumentTypeError(f"priority must be in [0, {MAX_PRIORITY}], got {priority}")
    return priority


def _attach_file_logging(log_path: Path, level: str) -> None:
    root = logging.getLogger()

    for h in root.handlers:
        if isinstance(h, logging.FileHandler):
            if Path(getattr(h, "baseFilename", "")) == log_path:
                return

    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)


def _setup_logging(config: FrontierConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, config.logs.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    log_path = config.get_log_path()
    if log_path is not None:
        _attach_file_logging(log_path, config.logs.log_level)


def _cmd_canonicalize(args: argparse.Namespace) -> int:
    canonical = canonicalize(args.url, args.base)
    if canonical is None:
        print(f"Invalid URL: {args.url}", file=sys.stderr)
        return 1
    print(canonical)
    return 0


def _cmd_enqueue(args: argparse.Namespace, config: FrontierConfig) -> int:
    canonical = canonicalize(args.url, args.base)
    if canonical is None:
        print(f"Invalid URL: {args.url}", file=sys.stderr)
        return 1
    if not config.limits.allows_depth(args.depth):
        print(f"Depth {args.depth} exceeds max_depth {config.limits.max_depth}", file=sys.stderr)
        return 1

    record = UrlRecord(
        url=args.url,
        canonical_url=canonical,
        docid=args.docid,
        priority=args.priority,
        depth=args.depth,
        parent_docid=args.parent_docid,
        parent_url=args.base,
    )
    with CrawlFrontier.from_config(config) as frontier:
        frontier.enqueue(record)
        print(f"Enqueued {canonical} [{describe_key(record)}]")
    return 0


def _cmd_peek(args: argparse.Namespace, config: FrontierConfig) -> int:
    count = args.count or config.limits.batch_size
    with CrawlFrontier.from_config(config) as frontier:
        for record in frontier.peek_batch(count):
            print(f"{describe_key(record)}\t{record.canonical_url}")
    return 0


def _cmd_delete(args: argparse.Namespace, config: FrontierConfig) -> int:
    count = args.count or config.limits.batch_size
    with CrawlFrontier.from_config(config) as frontier:
        deleted = frontier.delete_batch(count)
    print(f"Deleted {deleted} URLs")
    return 0


def _cmd_stats(args: argparse.Namespace, config: FrontierConfig) -> int:
    with CrawlFrontier.from_config(config) as frontier:
        stats = frontier.get_stats()
    print(f"Queue: {stats['queue']}")
    print(f"Mode: {stats['mode']}")
    print(f"Length: {stats['length']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Crawl frontier tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    canon = subparsers.add_parser("canonicalize", help="Print the canonical form of a URL")
    canon.add_argument("url")
    canon.add_argument("--base", default=None, help="URL to resolve a relative reference against")

    def with_config(sub: argparse.ArgumentParser) -> argparse.ArgumentParser:
        sub.add_argument(
            "--config",
            required=False,
            help="Path to frontier config YAML file",
            default="config.yaml",
        )
        return sub

    enqueue = with_config(subparsers.add_parser("enqueue", help="Canonicalize and enqueue a URL"))
    enqueue.add_argument("url")
    enqueue.add_argument("--docid", type=int, required=True)
    enqueue.add_argument("--priority", type=_priority, default=0, help="0 (highest) to 255")
    enqueue.add_argument("--depth", type=int, default=0)
    enqueue.add_argument("--parent-docid", type=int, default=None)
    enqueue.add_argument("--base", default=None)

    peek = with_config(subparsers.add_parser("peek", help="Show queued URLs in crawl order"))
    peek.add_argument("--count", type=int, default=None)

    delete = with_config(subparsers.add_parser("delete", help="Retire the first URLs in crawl order"))
    delete.add_argument("--count", type=int, default=None)

    with_config(subparsers.add_parser("stats", help="Show queue length and mode"))

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "canonicalize":
        return _cmd_canonicalize(args)

    try:
        config = FrontierConfig.from_yaml(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    _setup_logging(config)

    commands = {
        "enqueue": _cmd_enqueue,
        "peek": _cmd_peek,
        "delete": _cmd_delete,
        "stats": _cmd_stats,
    }
    try:
        return commands[args.command](args, config)
    except (FrontierError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
