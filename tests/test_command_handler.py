"""Tests for command_handler.py - chat entry point, configuration checks and listings."""
from datetime import datetime, timezone

import pytest

from deploybot.command_handler import DeployBot
from deploybot.commands import HELP_TEXT
from deploybot.config import Settings
from deploybot.errors import Misconfigured, UpstreamError
from deploybot.listing import days_ago, format_revisions
from deploybot.models import OutcomeState


@pytest.fixture
def bot(settings, source_control, registry, platform) -> DeployBot:
    return DeployBot(settings, source_control, registry, platform)


@pytest.mark.integration
@pytest.mark.asyncio
class TestHandleChat:
    async def test_deploy_runs_the_pipeline(self, bot, sink, platform):
        outcome = await bot.handle_chat("alice", "deploy abc1234 to workload web-api in Production", sink)
        assert outcome.state == OutcomeState.COMPLETED
        assert len(platform.actions) == 1

    async def test_malformed_command_makes_no_calls(self, bot, sink, source_control, registry, platform):
        outcome = await bot.handle_chat("alice", "rollback project p1 workload w1 rev-42", sink)

        assert outcome.state == OutcomeState.ABORTED
        assert outcome.stage == "Parsing"
        assert "revision rev-42" in sink.messages_for("alice")[0]
        assert source_control.calls == registry.calls == platform.calls == []

    async def test_help(self, bot, sink):
        outcome = await bot.handle_chat("anyone", "help", sink)
        assert outcome.state == OutcomeState.COMPLETED
        assert sink.messages_for("anyone") == [HELP_TEXT]

    async def test_misconfigured_request_is_rejected_before_the_pipeline(self, source_control, registry, platform, sink):
        settings = Settings(_env_file=None, authz_deploy_allow="alice", rancher_api_url="https://rancher/v3")
        bot = DeployBot(settings, source_control, registry, platform)

        outcome = await bot.handle_chat("alice", "pause project p1 workload w1", sink)

        assert outcome.state == OutcomeState.FAILED
        assert isinstance(outcome.cause, Misconfigured)
        assert outcome.cause.missing == ["rancher_access_key", "rancher_secret_key"]
        assert platform.calls == []

    async def test_unauthorized_actor_is_denied_before_config_is_checked(self, source_control, registry, platform, sink):
        settings = Settings(_env_file=None, authz_deploy_allow="alice", rancher_api_url="https://rancher/v3")
        bot = DeployBot(settings, source_control, registry, platform)

        outcome = await bot.handle_chat("mallory", "pause project p1 workload w1", sink)

        assert outcome.state == OutcomeState.DENIED
        assert not any("rancher_access_key" in m for m in sink.messages_for("mallory"))
        assert platform.calls == []

    async def test_deploy_needs_registry_and_source_credentials(self, settings):
        stripped = settings.model_copy(update={"quay_token": ""})
        assert stripped.missing_for("deploy") == ["quay_token"]
        assert stripped.missing_for("rollback") == []


@pytest.mark.integration
@pytest.mark.asyncio
class TestListings:
    async def test_list_revisions_newest_first(self, bot, sink):
        outcome = await bot.handle_chat("alice", "list rancher project p1 workload w1 revisions", sink)

        assert outcome.state == OutcomeState.COMPLETED
        names = [line for line in outcome.message.splitlines() if line.startswith("*rev-")]
        assert names == ["*rev-5:*", "*rev-42:*", "*rev-3:*", "*rev-2:*", "*rev-1:*"]

    async def test_list_requires_permission(self, bot, sink, platform):
        outcome = await bot.handle_chat("mallory", "list rancher projects", sink)
        assert outcome.state == OutcomeState.DENIED
        assert platform.calls == []

    async def test_unknown_repository_commits(self, bot, sink):
        outcome = await bot.handle_chat("alice", "list github nope commits", sink)
        assert outcome.state == OutcomeState.ABORTED
        assert "couldn't list" in outcome.message

    async def test_list_quay_repos(self, bot, sink, registry):
        outcome = await bot.handle_chat("alice", "list quay repos", sink)
        assert outcome.state == OutcomeState.COMPLETED
        assert "*web-api:*" in outcome.message
        assert registry.calls == [("list_repositories",)]

    async def test_upstream_error_is_reported(self, bot, sink, platform):
        async def boom():
            raise UpstreamError("Rancher", "GET projects returned 503", status_code=503, body="maintenance")

        platform.list_projects = boom
        outcome = await bot.handle_chat("alice", "list rancher projects", sink)

        assert outcome.state == OutcomeState.FAILED
        assert "503" in sink.messages_for("alice")[-1]


@pytest.mark.unit
def test_revision_age_in_days(revisions):
    now = datetime(1970, 1, 3, tzinfo=timezone.utc)
    assert days_ago(0, now) == 2
    assert "(2 days ago)" in format_revisions(revisions, now)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_malformed_upstream_row_is_reported(bot, sink, source_control):
    async def broken():
        raise KeyError("name")

    source_control.list_repositories = broken
    outcome = await bot.handle_chat("alice", "list github repos", sink)

    assert outcome.state == OutcomeState.FAILED
    assert isinstance(outcome.cause, KeyError)
    assert "listing your github repos" in sink.messages_for("alice")[-1]
    assert sink.messages_for("sec-lead") == [
        f"@alice had an issue while running the 'list github repos' command: {outcome.message}"
    ]
