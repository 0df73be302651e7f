"""
cli.py

Responsibility: CLI entrypoint for running the trigger pipeline outside Lambda.

Commands:
- `trigger`: same flow as the Lambda handler, for an SNS event file or an explicit commit
- `overrides`: show the overrides a commit resolves to
- `project-name`: show the CodeBuild project name for org/repo/image

Settings come from the environment exactly as in Lambda (see `config.py`).
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from pathlib import Path

from shepherd.config import Settings, configure_logging
from shepherd.github_client import GitHubClient
from shepherd.handler import CommitEvent, parse_event, trigger
from shepherd.naming import project_name
from shepherd.overrides import resolve_overrides


class CLIError(RuntimeError):
    pass


def _settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    if args.github_token:
        settings = dataclasses.replace(settings, github_token=args.github_token)
    return settings


def _commit_from_args(args: argparse.Namespace) -> CommitEvent:
    if getattr(args, "event", None):
        path = Path(args.event)
        if not path.exists():
            raise CLIError(f"Event file does not exist: {path}")
        return parse_event(json.loads(path.read_text(encoding="utf-8")))
    if not (args.org and args.repo and args.sha):
        raise CLIError("--org, --repo and --sha are required unless --event is given")
    return CommitEvent(org=args.org, repo=args.repo, sha=args.sha)


def _print_json(data: object) -> None:
    sys.stdout.write(json.dumps(data, indent=2, sort_keys=True) + "\n")


def trigger_cmd(args: argparse.Namespace) -> int:
    settings = _settings(args)
    configure_logging(settings.log_level)
    build = trigger(_commit_from_args(args), settings)
    _print_json(dataclasses.asdict(build))
    return 0


def overrides_cmd(args: argparse.Namespace) -> int:
    settings = _settings(args)
    configure_logging(settings.log_level)
    commit = _commit_from_args(args)
    client = GitHubClient(settings.github_token, api_base=settings.github_api)
    result = resolve_overrides(client, commit.org, commit.repo, commit.sha, strict=settings.strict_fetch)
    _print_json(result.as_dict())
    return 0


def project_name_cmd(args: argparse.Namespace) -> int:
    sys.stdout.write(project_name(args.org, args.repo, args.image_uri) + "\n")
    return 0


def _add_commit_args(p: argparse.ArgumentParser, *, allow_event: bool) -> None:
    if allow_event:
        p.add_argument("--event", default=None, help="Path to an SNS event JSON file")
    p.add_argument("--org", default=None, help="Repository owner")
    p.add_argument("--repo", default=None, help="Repository name")
    p.add_argument("--sha", default=None, help="Commit sha")
    p.add_argument("--github-token", default=None, help="GitHub token (or set env GITHUB_ACCESS_TOKEN)")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bundle-shepherd", description="Start CodeBuild runs for GitHub pushes")
    sub = p.add_subparsers(dest="command", required=True)

    t = sub.add_parser("trigger", help="Resolve overrides, find or create the project, start a build")
    _add_commit_args(t, allow_event=True)
    t.set_defaults(func=trigger_cmd)

    o = sub.add_parser("overrides", help="Show the overrides resolved for a commit")
    _add_commit_args(o, allow_event=False)
    o.set_defaults(func=overrides_cmd)

    n = sub.add_parser("project-name", help="Show the CodeBuild project name")
    n.add_argument("org")
    n.add_argument("repo")
    n.add_argument("image_uri")
    n.set_defaults(func=project_name_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
