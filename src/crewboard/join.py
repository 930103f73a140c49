"""Team Join Protocol: time-boxed join codes for team projects.

A code looks like ``CT-7F3K`` and is compared case-insensitively. Codes are
never deleted on redemption; any number of users may redeem the same code
until it expires. Minting a new code expires the project's previous one, so
at most one code per project is active at a time.
"""

from __future__ import annotations

import logging
import re
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from .config import DEFAULT_CODE_TTL_DAYS
from .errors import (
    ConflictError,
    InconsistentStateError,
    NotFoundOrExpiredError,
    RpcUnavailableError,
    ValidationError,
)
from .models import JoinCode, MemberRole, Membership, Project, utc_now
from .repositories import JoinCodeRepository, MembershipRepository, ProjectRepository

logger = logging.getLogger(__name__)

# No 0/O or 1/I: codes are read aloud and typed by hand.
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_PATTERN = re.compile(r"^[A-Z0-9]{2}-[A-Z0-9]{4}$")
INVALID_CODE_MESSAGE = "Invalid or expired team code"
ALREADY_MEMBER_MESSAGE = "You are already a member of this project"


def generate_code() -> str:
    """Generate a local ``XX-XXXX`` token."""
    chars = [secrets.choice(CODE_ALPHABET) for _ in range(6)]
    return f"{''.join(chars[:2])}-{''.join(chars[2:])}"


def normalize_code(raw: str) -> str:
    """Uppercase and drop surrounding/embedded whitespace."""
    return re.sub(r"\s+", "", raw or "").upper()


def is_well_formed(code: str) -> bool:
    return bool(CODE_PATTERN.match(normalize_code(code)))


@dataclass(frozen=True)
class Redemption:
    """Result of a successful redemption."""

    project: Project
    membership: Membership
    join_code: JoinCode


class TeamJoinProtocol:
    """Mints and redeems join codes.

    The protocol talks to repositories only. Recording activity and
    updating the local Store after a redemption is the coordinator's job.
    """

    def __init__(
        self,
        codes: JoinCodeRepository,
        memberships: MembershipRepository,
        projects: ProjectRepository,
        *,
        ttl: timedelta = timedelta(days=DEFAULT_CODE_TTL_DAYS),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.codes = codes
        self.memberships = memberships
        self.projects = projects
        self.ttl = ttl
        self.clock = clock

    async def _fresh_token(self) -> str:
        try:
            return normalize_code(await self.codes.generate())
        except RpcUnavailableError:
            logger.debug("generate_team_code unavailable; generating code locally")
            return generate_code()

    async def mint_code(self, project_id: str, creator_id: str) -> JoinCode:
        """Store a new code for *project_id*, expiring any active one first.

        Collisions on the token are left to the remote store's unique
        constraint.
        """
        now = self.clock()
        token = await self._fresh_token()
        expired = await self.codes.expire_active(project_id, now)
        if expired:
            logger.info(f"Expired {expired} previous join code(s) for project {project_id}")
        code = await self.codes.create(token, project_id, creator_id, now + self.ttl)
        logger.info(f"Minted join code for project {project_id} (expires {code.expires_at.isoformat()})")
        return code

    async def active_code(self, project_id: str) -> JoinCode | None:
        return await self.codes.active_for_project(project_id, self.clock())

    async def redeem(self, code: str, user_id: str) -> Redemption:
        """Add *user_id* to the project behind *code* as a ``member``.

        Raises:
            ValidationError: empty code
            NotFoundOrExpiredError: no code with ``expires_at > now``
            ConflictError: the user already holds a membership
        """
        normalized = normalize_code(code)
        if not normalized:
            raise ValidationError("Team code is required")

        join_code = await self.codes.find_active(normalized, self.clock())
        if join_code is None:
            raise NotFoundOrExpiredError(INVALID_CODE_MESSAGE)

        existing = await self.memberships.get(join_code.project_id, user_id)
        if existing is not None:
            raise ConflictError(
                ALREADY_MEMBER_MESSAGE,
                details={"project_id": join_code.project_id, "role": str(existing.role)},
            )

        try:
            membership = await self.memberships.add(join_code.project_id, user_id, MemberRole.MEMBER)
        except ConflictError as exc:
            # Lost a race with a concurrent redemption by the same user.
            raise ConflictError(ALREADY_MEMBER_MESSAGE, details=exc.details) from exc

        project = await self.projects.get(join_code.project_id)
        if project is None:
            raise InconsistentStateError(
                "Joined the project but it could not be loaded", partial=membership
            )
        return Redemption(project=project, membership=membership, join_code=join_code)
