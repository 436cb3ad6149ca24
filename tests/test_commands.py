"""Tests for commands.py - chat command grammar."""
import pytest

from deploybot.commands import HelpCommand, ListCommand, parse_command
from deploybot.errors import AmbiguousRequest, CommandError
from deploybot.models import DeploymentRequest, RollbackSelector


@pytest.mark.unit
class TestDeploy:
    def test_deploy_with_dry_run(self):
        req = parse_command("alice", "deploy abc1234f to workload web-api in Staging dry run")
        assert isinstance(req, DeploymentRequest)
        assert req.action == "deploy"
        assert req.commit == "abc1234"
        assert req.workload == "web-api"
        assert req.workload_field == "name"
        assert req.project == "Staging"
        assert req.environment == "Staging"
        assert req.dry_run is True
        assert req.source_repository == "web-api"

    def test_deploy_production_without_dry_run(self):
        req = parse_command("alice", "deploy abc1234f to workload web-api in Production")
        assert req.environment == "Production"
        assert req.dry_run is False

    def test_commit_is_truncated_and_lowercased(self):
        req = parse_command("alice", "deploy ABCDEF0123456789 to workload web-api in staging")
        assert req.commit == "abcdef0"
        assert req.environment == "Staging"

    def test_explicit_source_repository(self):
        req = parse_command("alice", "deploy abc1234 from api-monorepo to workload web-api in Staging")
        assert req.source_repository == "api-monorepo"
        assert req.workload == "web-api"

    @pytest.mark.parametrize(
        "text",
        [
            "deploy abc123 to workload web-api in Staging",
            "deploy zzzzzzzz to workload web-api in Staging",
            "deploy abc1234 to workload web-api in Development",
            "deploy abc1234 to web-api in Staging",
            "deploy abc1234 to workload web-api in Staging please",
            "deploy abc1234 to workload web-api",
        ],
    )
    def test_malformed_deploys(self, text):
        with pytest.raises(CommandError):
            parse_command("alice", text)

    def test_mentions_and_slash_commands_are_stripped(self):
        req = parse_command("alice", "@deploybot deploy abc1234 to workload web-api in Staging")
        assert req.commit == "abc1234"
        req = parse_command("alice", "/deploy@deploy_bot abc1234 to workload web-api in Staging")
        assert req.commit == "abc1234"

    def test_request_is_immutable(self):
        req = parse_command("alice", "deploy abc1234 to workload web-api in Staging")
        with pytest.raises(Exception):
            req.dry_run = True


@pytest.mark.unit
class TestWorkloadActions:
    def test_rollback_to_named_revision(self):
        req = parse_command("alice", "rollback project p1 workload w1 revision rev-42")
        assert req.action == "rollback"
        assert req.project == "p1"
        assert req.workload == "w1"
        assert req.workload_field == "id"
        assert req.selector == RollbackSelector(kind="revision", name="rev-42")

    @pytest.mark.parametrize("kind", ["latest", "previous", "LATEST"])
    def test_rollback_keywords(self, kind):
        req = parse_command("alice", f"rollback rancher project c-1:p-1 workload deployment:default:w1 {kind}")
        assert req.selector.kind == kind.lower()
        assert req.selector.name is None
        assert req.project == "c-1:p-1"

    def test_name_without_revision_keyword_is_ambiguous(self):
        with pytest.raises(AmbiguousRequest):
            parse_command("alice", "rollback project p1 workload w1 rev-42")

    @pytest.mark.parametrize(
        "text",
        [
            "rollback project p1 workload w1",
            "rollback project p1 workload w1 revision",
            "rollback project p1 workload w1 latest rev-1",
        ],
    )
    def test_incomplete_rollback_selectors(self, text):
        with pytest.raises(AmbiguousRequest):
            parse_command("alice", text)

    def test_rollback_trailing_words(self):
        with pytest.raises(CommandError):
            parse_command("alice", "rollback project p1 workload w1 revision rev-1 now")

    @pytest.mark.parametrize("verb", ["pause", "resume"])
    def test_pause_and_resume(self, verb):
        req = parse_command("alice", f"{verb} project p1 workload w1")
        assert req.action == verb
        assert req.selector is None

    def test_pause_does_not_take_a_revision(self):
        with pytest.raises(AmbiguousRequest):
            parse_command("alice", "pause project p1 workload w1 latest")


@pytest.mark.unit
class TestListAndHelp:
    @pytest.mark.parametrize(
        "text,target,fields",
        [
            ("list rancher projects", "projects", {}),
            ("list Rancher project p1 workloads", "workloads", {"project": "p1"}),
            ("list rancher project p1 workload w1 revisions", "revisions", {"project": "p1", "workload": "w1"}),
            ("list github repos", "github_repos", {}),
            ("list Github repositories", "github_repos", {}),
            ("list github web-api commits", "github_commits", {"repository": "web-api"}),
            ("list quay repos", "quay_repos", {}),
        ],
    )
    def test_list_commands(self, text, target, fields):
        command = parse_command("alice", text)
        assert isinstance(command, ListCommand)
        assert command.target == target
        for key, value in fields.items():
            assert getattr(command, key) == value

    def test_list_service(self):
        assert parse_command("alice", "list github repos").service == "github"
        assert parse_command("alice", "list quay repos").service == "quay"
        assert parse_command("alice", "list rancher projects").service == "rancher"

    def test_help(self):
        assert isinstance(parse_command("alice", "help"), HelpCommand)

    @pytest.mark.parametrize("text", ["", "   ", "launch rockets", "list jenkins jobs", "list rancher projects now"])
    def test_unknown_or_malformed(self, text):
        with pytest.raises(CommandError):
            parse_command("alice", text)
