"""Chat command grammar.

    deploy <commit> [from <repository>] to workload <name> in (Staging|Production) [dry run]
    (rollback|pause|resume) [rancher] project <project-id> workload <workload-id> [revision <name>|latest|previous]
    list rancher projects
    list rancher project <project-id> workloads
    list rancher project <project-id> workload <workload-id> revisions
    list github (repos|repositories)
    list github <repository> commits
    list quay (repos|repositories)
    help

Keywords are case-insensitive. Every command is validated here, before any
collaborator is contacted.
"""
import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import AmbiguousRequest, CommandError
from .models import DeploymentRequest, RollbackSelector, normalize_commit
from .resolver import validate_selector

COMMIT_RE = re.compile(r"^[a-z0-9]{7,}$", re.IGNORECASE)
NAME_RE = re.compile(r"^[\w-]+$")
ID_RE = re.compile(r"^[\w:-]+$")
ENVIRONMENTS = {"staging": "Staging", "production": "Production"}
SELECTORS = {"revision", "latest", "previous"}

HELP_TEXT = (
    "Commands:\n"
    "- deploy <commit> [from <repository>] to workload <workload-name> in (Staging|Production) [dry run]\n"
    "- rollback project <project-id> workload <workload-id> (revision <name>|latest|previous)\n"
    "- pause project <project-id> workload <workload-id>\n"
    "- resume project <project-id> workload <workload-id>\n"
    "- list rancher projects\n"
    "- list rancher project <project-id> workloads\n"
    "- list rancher project <project-id> workload <workload-id> revisions\n"
    "- list github repos\n"
    "- list github <repository> commits\n"
    "- list quay repos\n"
    "- help"
)


class ListCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    actor: str
    target: Literal["projects", "workloads", "revisions", "github_repos", "github_commits", "quay_repos"]
    project: str | None = None
    workload: str | None = None
    repository: str | None = None

    @property
    def service(self) -> str:
        if self.target.startswith("github"):
            return "github"
        if self.target.startswith("quay"):
            return "quay"
        return "rancher"

    @property
    def label(self) -> str:
        return self.target.replace("_", " ")


class HelpCommand(BaseModel):
    actor: str


Command = DeploymentRequest | ListCommand | HelpCommand


class _Tokens:
    """Cursor over the words of a command."""

    def __init__(self, words: list[str]):
        self.words = words
        self.pos = 0

    def peek(self) -> str | None:
        return self.words[self.pos] if self.pos < len(self.words) else None

    def take(self, what: str) -> str:
        word = self.peek()
        if word is None:
            raise CommandError(f"Expected {what} at the end of the command.")
        self.pos += 1
        return word

    def keyword(self, *options: str) -> str:
        word = self.take(" or ".join(f"`{o}`" for o in options))
        if word.lower() not in options:
            raise CommandError(f"Expected {' or '.join(f'`{o}`' for o in options)}, got `{word}`.")
        return word.lower()

    def accept(self, keyword: str) -> bool:
        word = self.peek()
        if word is not None and word.lower() == keyword:
            self.pos += 1
            return True
        return False

    def value(self, what: str, pattern: re.Pattern) -> str:
        word = self.take(what)
        if not pattern.match(word):
            raise CommandError(f"`{word}` is not a valid {what}.")
        return word

    def rest(self) -> list[str]:
        words = self.words[self.pos:]
        self.pos = len(self.words)
        return words


def _words(text: str) -> list[str]:
    words = text.split()
    # Drop bot mentions like `@deploybot` in front of the command.
    while words and words[0].startswith("@"):
        words = words[1:]
    if words and words[0].startswith("/"):
        words[0] = words[0][1:].split("@", 1)[0]
    return words


def parse_command(actor: str, text: str) -> Command:
    words = _words(text)
    if not words:
        raise CommandError("Empty command. Try `help`.")
    verb = words[0].lower()
    tokens = _Tokens(words[1:])

    if verb in {"help", "start"}:
        return HelpCommand(actor=actor)
    if verb == "deploy":
        return _parse_deploy(actor, text, tokens)
    if verb in {"rollback", "pause", "resume"}:
        return _parse_workload_action(actor, text, verb, tokens)
    if verb == "list":
        return _parse_list(actor, tokens)
    raise CommandError(f"I don't know the command `{words[0]}`. Try `help`.")


def _build_request(**fields) -> DeploymentRequest:
    try:
        return DeploymentRequest(**fields)
    except ValidationError as e:
        reasons = "; ".join(err["msg"] for err in e.errors())
        raise CommandError(f"Invalid command: {reasons}") from e


def _parse_deploy(actor: str, text: str, tokens: _Tokens) -> DeploymentRequest:
    raw_commit = tokens.value("commit", COMMIT_RE)
    try:
        commit = normalize_commit(raw_commit)
    except ValueError as e:
        raise CommandError(str(e)) from e

    repository = None
    if tokens.accept("from"):
        repository = tokens.value("repository name", NAME_RE)

    tokens.keyword("to")
    tokens.keyword("workload")
    workload = tokens.value("workload name", NAME_RE)
    tokens.keyword("in")
    env_word = tokens.take("`Staging` or `Production`")
    environment = ENVIRONMENTS.get(env_word.lower())
    if environment is None:
        raise CommandError(f"Unknown environment `{env_word}`, use `Staging` or `Production`.")

    dry_run = False
    if tokens.accept("dry"):
        tokens.keyword("run")
        dry_run = True
    extra = tokens.rest()
    if extra:
        raise CommandError(f"Unexpected words at the end of the command: `{' '.join(extra)}`.")

    return _build_request(
        actor=actor,
        action="deploy",
        project=environment,
        environment=environment,
        workload=workload,
        workload_field="name",
        commit=commit,
        repository=repository,
        dry_run=dry_run,
        raw_text=text.strip(),
    )


def _parse_workload_action(actor: str, text: str, verb: str, tokens: _Tokens) -> DeploymentRequest:
    tokens.accept("rancher")
    tokens.keyword("project")
    project = tokens.value("project id", ID_RE)
    tokens.keyword("workload")
    workload = tokens.value("workload id", ID_RE)
    rest = tokens.rest()

    selector = None
    if verb == "rollback":
        if len(rest) > 2:
            raise CommandError(f"Unexpected words at the end of the command: `{' '.join(rest[2:])}`.")
        kind = rest[0].lower() if rest and rest[0].lower() in SELECTORS else None
        if kind is None:
            name = rest[0] if rest else None
            if len(rest) > 1:
                raise CommandError(f"Unexpected words at the end of the command: `{' '.join(rest[1:])}`.")
        else:
            name = rest[1] if len(rest) > 1 else None
        if name is not None and not ID_RE.match(name):
            raise CommandError(f"`{name}` is not a valid revision name.")
        selector = validate_selector(RollbackSelector(kind=kind, name=name))
    elif rest:
        raise AmbiguousRequest(f"`{verb}` always applies to the current revision; drop `{' '.join(rest)}`.")

    return _build_request(
        actor=actor,
        action=verb,
        project=project,
        workload=workload,
        workload_field="id",
        selector=selector,
        raw_text=text.strip(),
    )


def _parse_list(actor: str, tokens: _Tokens) -> ListCommand:
    service = tokens.keyword("rancher", "github", "quay")

    if service == "rancher":
        if tokens.accept("projects"):
            command = ListCommand(actor=actor, target="projects")
        else:
            tokens.keyword("project")
            project = tokens.value("project id", ID_RE)
            if tokens.accept("workloads"):
                command = ListCommand(actor=actor, target="workloads", project=project)
            else:
                tokens.keyword("workload")
                workload = tokens.value("workload id", ID_RE)
                tokens.keyword("revisions")
                command = ListCommand(actor=actor, target="revisions", project=project, workload=workload)
    elif service == "github":
        word = tokens.take("`repos` or a repository name")
        if word.lower() in {"repos", "repositories"}:
            command = ListCommand(actor=actor, target="github_repos")
        elif NAME_RE.match(word):
            tokens.keyword("commits")
            command = ListCommand(actor=actor, target="github_commits", repository=word)
        else:
            raise CommandError(f"`{word}` is not a valid repository name.")
    else:
        tokens.keyword("repos", "repositories")
        command = ListCommand(actor=actor, target="quay_repos")

    extra = tokens.rest()
    if extra:
        raise CommandError(f"Unexpected words at the end of the command: `{' '.join(extra)}`.")
    return command
