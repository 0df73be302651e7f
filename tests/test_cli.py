from __future__ import annotations

import json

import pytest

from shepherd import cli
from shepherd.codebuild import BuildInfo
from shepherd.handler import CommitEvent

ENV = {
    "GITHUB_ACCESS_TOKEN": "env-token",
    "AWS_ACCOUNT_ID": "123456789012",
    "AWS_DEFAULT_REGION": "us-east-1",
    "S3_BUCKET": "bundles",
    "S3_PREFIX": "lambda",
    "PROJECT_ROLE": "arn:aws:iam::123456789012:role/bundle-shepherd",
}


@pytest.fixture()
def env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key, value in ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)


def test_project_name(capsys) -> None:
    assert cli.main(["project-name", "acme", "widgets", "123.dkr.ecr.us-east-1.amazonaws.com/repo:nodejs6.x"]) == 0
    assert capsys.readouterr().out == "acme_widgets_repo_nodejs6_x\n"


def test_overrides(env, fake_github, capsys) -> None:
    fake_github.add_file(".bundle-shepherd.json", '{"size": "medium"}')

    assert cli.main(["overrides", "--org", "acme", "--repo", "widgets", "--sha", "abc", "--github-token", "cli-token"]) == 0

    assert json.loads(capsys.readouterr().out) == {"buildspec": False, "image": "nodejs6.x", "size": "medium"}
    assert fake_github.calls[0]["headers"]["Authorization"] == "Bearer cli-token"


def test_trigger_with_commit_args(env, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    seen = {}

    def fake_trigger(commit, settings):
        seen["commit"] = commit
        seen["token"] = settings.github_token
        return BuildInfo(id="p:1", source_version=commit.sha)

    monkeypatch.setattr(cli, "trigger", fake_trigger)

    assert cli.main(["trigger", "--org", "acme", "--repo", "widgets", "--sha", "abc"]) == 0

    assert seen == {"commit": CommitEvent("acme", "widgets", "abc"), "token": "env-token"}
    assert json.loads(capsys.readouterr().out)["id"] == "p:1"


def test_trigger_with_event_file(env, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    payload = {"after": "f00", "repository": {"name": "widgets", "owner": {"name": "acme"}}}
    event_path = tmp_path / "event.json"
    event_path.write_text(json.dumps({"Records": [{"Sns": {"Message": json.dumps(payload)}}]}), encoding="utf-8")
    seen = {}

    def fake_trigger(commit, settings):
        seen["commit"] = commit
        return BuildInfo(id="p:1")

    monkeypatch.setattr(cli, "trigger", fake_trigger)

    assert cli.main(["trigger", "--event", str(event_path)]) == 0
    assert seen["commit"] == CommitEvent("acme", "widgets", "f00")


def test_trigger_requires_commit(env) -> None:
    with pytest.raises(cli.CLIError):
        cli.main(["trigger", "--org", "acme"])


def test_trigger_missing_event_file(env, tmp_path) -> None:
    with pytest.raises(cli.CLIError, match="does not exist"):
        cli.main(["trigger", "--event", str(tmp_path / "missing.json")])
