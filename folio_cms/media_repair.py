"""Find and repair posts whose media ids point at nothing.

    python -m folio_cms.media_repair diagnose
    python -m folio_cms.media_repair fix            # show proposed matches only
    python -m folio_cms.media_repair fix --apply    # create the matched media records
"""
import argparse
import logging
import sys

from pymongo.errors import PyMongoError

from .config import settings
from .services.orphans import diagnose_orphans, fix_orphans


def print_diagnosis(report: dict) -> None:
    summary = report["summary"]
    print(f"📄 Posts scanned: {summary['totalPosts']}")
    print(f"🔗 Media referenced: {summary['referenced']}")
    print(f"✅ Existing: {summary['existing']}")
    print(f"⚠️ Orphaned: {summary['orphaned']}")

    for post in report["affectedPosts"]:
        print(f"\n  {post['title']} ({post['slug']})")
        for media_id in post["orphanedIds"]:
            print(f"    - {media_id}")


def print_fix(report: dict) -> None:
    if report.get("error"):
        print(f"❌ {report['error']}")

    print(f"⚠️ Orphaned ids considered: {report['orphaned']}")
    for match in report["matches"]:
        print(f"  {match['id']} -> {match['url']}")

    if report["unmatched"]:
        print(f"\n{len(report['unmatched'])} ids could not be matched to stored files:")
        for media_id in report["unmatched"]:
            print(f"  - {media_id}")
        print("Re-upload these through the admin or remove them from their posts.")

    if report["applied"]:
        print(f"\n✅ Created {report['created']}, skipped {report['skipped']}, failed {report['failed']}")
    elif report["matches"]:
        print("\nNothing written. Review the matches above and re-run with --apply.")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="folio_cms.media_repair", description=__doc__.splitlines()[0])
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("diagnose", help="list posts that reference missing media")
    fix = sub.add_parser("fix", help="match orphaned ids to stored files")
    fix.add_argument("--apply", action="store_true", help="insert media records for the matches")
    fix.add_argument("--id", dest="ids", action="append", help="restrict to this orphaned id (repeatable)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "diagnose":
            print_diagnosis(diagnose_orphans())
        else:
            print_fix(fix_orphans(apply=args.apply, only_ids=args.ids))
    except PyMongoError as e:
        print(f"❌ Database error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
