"""Git-backed change history for the service catalog.

Every catalog mutation is committed to a git repository rooted at the catalog
directory, authored by the user who made the change. History is read back
from `git log`. The git CLI is driven through asyncio subprocesses.
"""

import asyncio
import contextlib
import time
from datetime import datetime, timezone
from pathlib import Path

from src.domain.entities.service import Service, ServiceTier
from src.domain.entities.service_change import ChangeAction, ServiceChange
from src.domain.entities.user_context import UserContext
from src.domain.exceptions import CollaboratorUnavailableError
from src.domain.repositories.versioning_repository import VersioningRepositoryInterface
from src.infrastructure.observability.logging import get_logger
from src.infrastructure.observability.metrics import record_collaborator_request

logger = get_logger(__name__)

LOG_FORMAT = "--pretty=format:%H|%an|%ae|%aI|%s"
GITIGNORE_CONTENT = "# Service Catalog\n*.tmp\n.*.tmp\n*.bak\n.DS_Store\n"

SYSTEM_USER = UserContext(
    username="system",
    name="Dash-Ops System",
    email="system@dash-ops.local",
)
ANONYMOUS_USER = UserContext(
    username="anonymous",
    name="Anonymous User",
    email="anonymous@dash-ops.local",
)


class GitVersioningRepository(VersioningRepositoryInterface):
    """VersioningRepositoryInterface implementation over the git CLI.

    Commits are serialized with an asyncio.Lock since git holds an index
    lock per repository.
    """

    def __init__(self, repo_path: str | Path, enabled: bool = True):
        self._repo_path = Path(repo_path)
        self._enabled = enabled
        self._lock = asyncio.Lock()

    def is_enabled(self) -> bool:
        return self._enabled

    async def initialize(self) -> None:
        """Create the repository if needed, set identity and make an initial commit.

        Raises:
            CollaboratorUnavailableError: If git is missing or fails
        """
        if not self._enabled:
            return

        self._repo_path.mkdir(parents=True, exist_ok=True)

        async with self._lock:
            if not (self._repo_path / ".git").exists():
                await self._git("init")
                await self._git("symbolic-ref", "HEAD", "refs/heads/main")
                logger.info("git_repository_initialized", path=str(self._repo_path))

            await self._setup_identity()

            gitignore = self._repo_path / ".gitignore"
            if not gitignore.exists():
                gitignore.write_text(GITIGNORE_CONTENT, encoding="utf-8")

            await self._git("add", "-A")
            await self._commit_staged("Initial service catalog repository", SYSTEM_USER)

    async def record_change(
        self,
        service: Service,
        user: UserContext | None,
        action: ChangeAction,
    ) -> None:
        """Commit the service file (or its removal) as one change."""
        if not self._enabled:
            return

        author = user or ANONYMOUS_USER
        async with self._lock:
            # -A stages deletions too
            await self._git("add", "-A", "--", self._service_file(service.metadata.name))
            committed = await self._commit_staged(
                self._build_commit_message(service, author, action), author
            )

        if committed:
            logger.info(
                "service_change_committed",
                service_name=service.metadata.name,
                action=action.value,
                user=author.username,
            )

    async def get_service_history(self, name: str) -> list[ServiceChange]:
        if not self._enabled:
            raise CollaboratorUnavailableError("git versioning is disabled")

        output = await self._git("log", LOG_FORMAT, "--", self._service_file(name))
        return self._parse_log(output)

    async def get_all_history(self) -> list[ServiceChange]:
        if not self._enabled:
            raise CollaboratorUnavailableError("git versioning is disabled")

        output = await self._git("log", LOG_FORMAT)
        return self._parse_log(output)

    async def get_status(self) -> str:
        if not self._enabled:
            return "Git versioning disabled"

        output = await self._git("status", "--porcelain")
        if not output.strip():
            return "Repository is clean"
        return f"Uncommitted changes:\n{output.strip()}"

    async def _setup_identity(self) -> None:
        """Set a repository-local committer identity when none is configured."""
        if await self._git("config", "user.name", check=False) == "":
            await self._git("config", "user.name", "Dash-Ops Service Catalog")
        if await self._git("config", "user.email", check=False) == "":
            await self._git("config", "user.email", "service-catalog@dash-ops.local")

    async def _commit_staged(self, message: str, author: UserContext) -> bool:
        """Commit staged changes, returning False when nothing is staged."""
        returncode, _, _ = await self._exec("diff", "--cached", "--quiet")
        if returncode == 0:
            return False

        await self._git(
            "commit",
            "-m",
            message,
            "--author",
            f"{author.name or author.username} <{author.email or ANONYMOUS_USER.email}>",
        )
        return True

    async def _git(self, *args: str, check: bool = True) -> str:
        """Run a git command and return its stdout.

        Raises:
            CollaboratorUnavailableError: If check is set and git fails
        """
        returncode, stdout, stderr = await self._exec(*args)
        if check and returncode != 0:
            raise CollaboratorUnavailableError(
                f"git {args[0]} failed (exit {returncode}): {stderr.strip()}"
            )
        return stdout.strip() if returncode == 0 else ""

    async def _exec(self, *args: str) -> tuple[int, str, str]:
        start_time = time.perf_counter()
        try:
            process = await asyncio.create_subprocess_exec(
                "git",
                *args,
                cwd=self._repo_path,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            try:
                stdout, stderr = await process.communicate()
            except asyncio.CancelledError:
                # Reap the child so a cancelled request leaves no git process behind
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()
                raise
        except OSError as e:
            record_collaborator_request("git", "failure", time.perf_counter() - start_time)
            raise CollaboratorUnavailableError(f"git is not available: {e}") from e

        outcome = "success" if process.returncode == 0 else "failure"
        record_collaborator_request("git", outcome, time.perf_counter() - start_time)
        return (
            process.returncode,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

    @staticmethod
    def _service_file(name: str) -> str:
        return f"{name}.yaml"

    @staticmethod
    def _build_commit_message(
        service: Service, user: UserContext, action: ChangeAction
    ) -> str:
        tier = service.metadata.tier
        tier_value = tier.value if isinstance(tier, ServiceTier) else tier
        lines = [
            f"{action.value.capitalize()} service '{service.metadata.name}' "
            f"by {user.name or user.username}",
            "",
            f"- Action: {action.value}",
            f"- User: {user.username} ({user.email})",
            f"- Timestamp: {datetime.now(timezone.utc).isoformat()}",
            f"- Tier: {tier_value}",
            f"- Team: {service.spec.team.github_team}",
        ]
        if service.metadata.version > 0:
            lines.append(f"- Version: {service.metadata.version}")
        return "\n".join(lines)

    @staticmethod
    def _parse_log(output: str) -> list[ServiceChange]:
        changes = []
        for line in output.splitlines():
            parts = line.split("|", 4)
            if len(parts) != 5:
                continue

            commit, author, email, date, subject = parts
            try:
                timestamp = datetime.fromisoformat(date)
            except ValueError:
                logger.warning("git_log_timestamp_unparseable", commit=commit, value=date)
                continue

            changes.append(
                ServiceChange(
                    commit=commit,
                    author=author,
                    email=email,
                    timestamp=timestamp,
                    message=subject,
                )
            )
        return changes
