"""Admin entrypoint.

Operator commands against the configured database:

    judgeflow-admin init-db
    judgeflow-admin standings --category <id> [--role BOARD]
    judgeflow-admin contest-standings --contest <id> [--role ADMIN]
    judgeflow-admin progress --category <id>
    judgeflow-admin requests [--kind removal|uncertification] [--status PENDING]

Output is JSON on stdout; errors print their structured form and exit 1.
"""

import argparse
import asyncio
import json
import os
import sys

import bittensor as bt
from dotenv import load_dotenv

from judgeflow.app import Services, build_services
from judgeflow.config import build_settings
from judgeflow.errors import JudgeflowError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="judgeflow-admin", description="Judgeflow admin tools")
    parser.add_argument("--config", type=str, default=None, help="YAML config file")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create all tables")

    standings = sub.add_parser("standings", help="Category standings as a role would see them")
    standings.add_argument("--category", required=True)
    standings.add_argument("--role", default="ADMIN")

    contest = sub.add_parser("contest-standings", help="Contest standings summed over categories")
    contest.add_argument("--contest", required=True)
    contest.add_argument("--role", default="ADMIN")
    contest.add_argument("--no-breakdown", action="store_true")

    progress = sub.add_parser("progress", help="Certification progress for a category")
    progress.add_argument("--category", required=True)

    requests = sub.add_parser("requests", help="List quorum requests")
    requests.add_argument("--kind", choices=["removal", "uncertification"], default="removal")
    requests.add_argument("--status", default=None)

    return parser


async def _run(args: argparse.Namespace, services: Services):
    if args.command == "init-db":
        await services.dbm.create_schema()
        return {"initialized": True}
    if args.command == "standings":
        result = await services.workflow.get_visible_standings(args.category, args.role)
    elif args.command == "contest-standings":
        result = await services.aggregator.compute_contest_standings(
            args.contest, args.role, include_breakdown=not args.no_breakdown,
        )
    elif args.command == "progress":
        result = await services.workflow.get_certification_progress(args.category)
    else:
        svc = services.removals if args.kind == "removal" else services.uncertifications
        return [r.model_dump(mode="json") for r in await svc.list_requests(args.status)]
    return result.model_dump(mode="json")


async def _main(args: argparse.Namespace) -> int:
    services = build_services(build_settings(args.config))
    try:
        payload = await _run(args, services)
    except JudgeflowError as e:
        bt.logging.error({"admin": {"command": args.command, "error": e.to_dict()}})
        print(json.dumps(e.to_dict(), indent=2))
        return 1
    finally:
        await services.close()
    print(json.dumps(payload, indent=2))
    return 0


def main(argv: list[str] | None = None) -> None:
    # Load .env if not in test mode
    if os.environ.get("JUDGEFLOW_TEST_MODE") != "true":
        load_dotenv()

    args = build_parser().parse_args(argv)
    sys.exit(asyncio.run(_main(args)))


if __name__ == "__main__":
    main()
