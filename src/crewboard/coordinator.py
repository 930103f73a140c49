"""Synchronization Coordinator.

The coordinator is the only writer of the Collaborative State Store. Each
public operation validates its input, checks client-side preconditions,
calls the repositories and, once the remote store has confirmed the write,
records activity and updates the Store. There are no optimistic writes: a
failed operation leaves the Store exactly as it was.

Public operations never raise for expected failures. They return an
:class:`~crewboard.outcome.Outcome` carrying either the value or a
:class:`~crewboard.errors.CrewboardError`.

Activity logging policy: activity entries recorded as a side effect of a
mutation are awaited inline but are best-effort. A failed append is logged
at WARNING and never fails or rolls back the mutation that triggered it.
An explicit :meth:`Coordinator.log_activity` call does report its failure.

Concurrency: mutations that target the same entity id are serialized with a
per-id ``asyncio.Lock``, and position assignment is serialized per project,
so responses reach the Store in the order the calls were issued. A
``replace()`` from a fetch that was issued before an edit but resolves after
it will still overwrite that edit; callers should refetch after bursts of
edits.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any, TypeVar

from .config import DEFAULT_CODE_TTL_DAYS, DEFAULT_FEED_LIMIT
from .errors import (
    ConflictError,
    CrewboardError,
    InconsistentStateError,
    PermissionDeniedError,
    ValidationError,
)
from .inputs import (
    InviteInput,
    ProfilePatch,
    ProjectInput,
    ProjectPatch,
    TaskInput,
    TaskPatch,
    validate_input,
)
from .join import Redemption, TeamJoinProtocol
from .models import (
    ActivityAction,
    ActivityDraft,
    ActivityEntry,
    JoinCode,
    MemberRole,
    Membership,
    Profile,
    Project,
    Task,
    TaskStatus,
    TeamMember,
    utc_now,
)
from .outcome import Outcome
from .remote import RemoteStore
from .repositories import (
    ActivityRepository,
    JoinCodeRepository,
    MembershipRepository,
    ProfileRepository,
    ProjectRepository,
    TaskRepository,
)
from .state import CollaborativeStateStore, Collection, StateView

logger = logging.getLogger(__name__)

T = TypeVar("T")

MANAGER_ROLES = frozenset({MemberRole.ADMIN, MemberRole.LEAD})


class ProjectListState(StrEnum):
    """What the project list screen should show."""

    READY = "ready"
    EMPTY = "empty"


@dataclass(frozen=True)
class ProjectListing:
    """Result of :meth:`Coordinator.fetch_projects`.

    ``suppressed_error`` is set when the fetch failed for a user who has
    never created a project: the UI shows onboarding instead of an error.
    """

    projects: list[Project]
    state: ProjectListState
    suppressed_error: CrewboardError | None = None


@dataclass(frozen=True)
class ProjectCreation:
    """Result of :meth:`Coordinator.create_project`.

    For team projects ``join_code`` holds the code to share. When minting
    it failed, ``code_error`` says why; the project itself is fine and the
    code can be regenerated later.
    """

    project: Project
    membership: Membership
    join_code: JoinCode | None = None
    code_error: CrewboardError | None = None


@dataclass
class Liveness:
    """Token a consumer passes to fetches and releases when it goes away.

    A fetch that resolves after release returns its data but does not
    write it into the Store.
    """

    alive: bool = True

    def release(self) -> None:
        self.alive = False


def _positions_key(project_id: str) -> str:
    return f"positions:{project_id}"


class Coordinator:
    """Orchestrates repository calls and Store updates for one session user."""

    def __init__(
        self,
        user_id: str,
        *,
        projects: ProjectRepository,
        tasks: TaskRepository,
        memberships: MembershipRepository,
        profiles: ProfileRepository,
        activity: ActivityRepository,
        join: TeamJoinProtocol,
        store: CollaborativeStateStore | None = None,
        clock: Callable[[], datetime] = utc_now,
        feed_limit: int = DEFAULT_FEED_LIMIT,
    ) -> None:
        self.user_id = user_id
        self.projects = projects
        self.tasks = tasks
        self.memberships = memberships
        self.profiles = profiles
        self.activity = activity
        self.join = join
        self.clock = clock
        self.feed_limit = feed_limit
        self._store = store or CollaborativeStateStore(activity_limit=feed_limit)
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_holders: dict[str, int] = {}

    @classmethod
    def from_remote(
        cls,
        remote: RemoteStore,
        user_id: str,
        *,
        clock: Callable[[], datetime] = utc_now,
        feed_limit: int = DEFAULT_FEED_LIMIT,
        code_ttl_days: int = DEFAULT_CODE_TTL_DAYS,
    ) -> Coordinator:
        """Wire repositories, join protocol and a fresh Store around *remote*."""
        projects = ProjectRepository(remote)
        memberships = MembershipRepository(remote)
        join = TeamJoinProtocol(
            JoinCodeRepository(remote),
            memberships,
            projects,
            ttl=timedelta(days=code_ttl_days),
            clock=clock,
        )
        return cls(
            user_id=user_id,
            projects=projects,
            tasks=TaskRepository(remote),
            memberships=memberships,
            profiles=ProfileRepository(remote),
            activity=ActivityRepository(remote),
            join=join,
            clock=clock,
            feed_limit=feed_limit,
        )

    @property
    def state(self) -> StateView:
        """Read-only view of the Store for UI consumers."""
        return self._store.view()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    async def _report(self, operation: str, work: Awaitable[T]) -> Outcome[T]:
        try:
            value = await work
        except CrewboardError as exc:
            logger.info(f"{operation} failed: {type(exc).__name__}: {exc}")
            return Outcome.failure(exc)
        return Outcome.success(value)

    @asynccontextmanager
    async def _serialized(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        # Holders include waiters; the lock is dropped once the last one leaves.
        self._lock_holders[key] = self._lock_holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_holders[key] -= 1
            if self._lock_holders[key] == 0:
                del self._lock_holders[key]
                del self._locks[key]

    async def _record(self, draft: ActivityDraft) -> ActivityEntry | None:
        """Best-effort activity append; see the module docstring for the policy."""
        try:
            entry = await self.activity.append(self.user_id, draft, self.clock())
        except CrewboardError as exc:
            logger.warning(f"Could not record '{draft.action}' activity: {exc}")
            return None
        self._store.upsert_one(Collection.ACTIVITY, entry)
        return entry

    async def _load_project(self, project_id: str) -> Project:
        project = await self.projects.get(project_id)
        if project is None:
            raise PermissionDeniedError("Project not found or you do not have access to it")
        return project

    async def _load_task(self, task_id: str) -> Task:
        task = await self.tasks.get(task_id)
        if task is None:
            raise PermissionDeniedError("Task not found or you do not have access to it")
        return task

    async def _require_member(self, project: Project) -> None:
        """Creator OR any membership row grants task-management rights."""
        if project.created_by == self.user_id:
            return
        if await self.memberships.get(project.id, self.user_id) is None:
            raise PermissionDeniedError("You must be a member of this project to manage its tasks")

    async def _require_manager(self, project: Project) -> None:
        if project.created_by == self.user_id:
            return
        membership = await self.memberships.get(project.id, self.user_id)
        if membership is None or membership.role not in MANAGER_ROLES:
            raise PermissionDeniedError("Only the project creator or a lead can manage members")

    def _cache_task(self, task: Task) -> None:
        # The task collection only holds the active project's tasks.
        active = self._store.active_project_id
        if active is None or active == task.project_id:
            self._store.upsert_one(Collection.TASKS, task)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def fetch_projects(self, guard: Liveness | None = None) -> Outcome[ProjectListing]:
        """All projects the user created or is a member of.

        A failed fetch is reported as an error only for users who have
        created a project before; for a brand new user it becomes an empty
        (onboarding) listing.
        """
        try:
            projects = await self.projects.list_visible(self.user_id)
        except CrewboardError as exc:
            return await self._project_fetch_failed(exc)

        discarded = guard is not None and not guard.alive
        if not discarded:
            self._store.replace(Collection.PROJECTS, projects)
        state = ProjectListState.READY if projects else ProjectListState.EMPTY
        return Outcome.success(ProjectListing(projects=projects, state=state), discarded=discarded)

    async def _project_fetch_failed(self, exc: CrewboardError) -> Outcome[ProjectListing]:
        try:
            profile = await self.profiles.get(self.user_id)
        except CrewboardError as lookup_exc:
            logger.warning(f"Project fetch failed ({exc}); profile lookup also failed ({lookup_exc})")
            return Outcome.failure(exc)

        if profile is not None and profile.has_ever_created_project:
            logger.warning(f"Project fetch failed: {exc}")
            return Outcome.failure(exc)

        logger.info(f"Project fetch failed for a first-time user; showing onboarding ({exc})")
        return Outcome.success(ProjectListing(projects=[], state=ProjectListState.EMPTY, suppressed_error=exc))

    async def create_project(self, data: ProjectInput | dict[str, Any]) -> Outcome[ProjectCreation]:
        return await self._report("create_project", self._create_project(data))

    async def _create_project(self, data: ProjectInput | dict[str, Any]) -> ProjectCreation:
        payload = validate_input(ProjectInput, data)
        project = await self.projects.create(payload, self.user_id)

        try:
            membership = await self.memberships.add(project.id, self.user_id, MemberRole.LEAD)
        except CrewboardError as exc:
            logger.error(f"Project {project.id} created but lead membership failed: {exc}")
            raise InconsistentStateError(
                f"Project '{project.name}' was created but you could not be added as its lead. "
                "Delete it and try again.",
                partial=project,
                cause=exc,
            ) from exc

        join_code: JoinCode | None = None
        code_error: CrewboardError | None = None
        if project.is_team:
            try:
                join_code = await self.join.mint_code(project.id, self.user_id)
            except CrewboardError as exc:
                logger.warning(f"Could not mint join code for project {project.id}: {exc}")
                code_error = exc

        await self._record(
            ActivityDraft(
                action=ActivityAction.CREATED_PROJECT,
                description=f'Created project "{project.name}"',
                project_id=project.id,
                target_id=project.id,
                target_type="project",
                metadata={"project_name": project.name, "project_type": str(project.project_type)},
            )
        )
        self._store.upsert_one(Collection.PROJECTS, project)
        return ProjectCreation(project=project, membership=membership, join_code=join_code, code_error=code_error)

    async def update_project(self, project_id: str, patch: ProjectPatch | dict[str, Any]) -> Outcome[Project]:
        return await self._report("update_project", self._update_project(project_id, patch))

    async def _update_project(self, project_id: str, patch: ProjectPatch | dict[str, Any]) -> Project:
        changes = validate_input(ProjectPatch, patch)
        if not changes.to_row():
            raise ValidationError("Nothing to update")
        async with self._serialized(project_id):
            project = await self.projects.update(project_id, changes)
        await self._record(
            ActivityDraft(
                action=ActivityAction.UPDATED_PROJECT,
                description=f'Updated project "{project.name}"',
                project_id=project.id,
                target_id=project.id,
                target_type="project",
                metadata={"fields": sorted(changes.to_row())},
            )
        )
        self._store.upsert_one(Collection.PROJECTS, project)
        return project

    async def delete_project(self, project_id: str) -> Outcome[str]:
        return await self._report("delete_project", self._delete_project(project_id))

    async def _delete_project(self, project_id: str) -> str:
        cached: Project | None = self._store.get(Collection.PROJECTS, project_id)
        async with self._serialized(project_id):
            await self.projects.delete(project_id)
        name = cached.name if cached else project_id
        # The project row is gone, so the entry references it through metadata only.
        await self._record(
            ActivityDraft(
                action=ActivityAction.DELETED_PROJECT,
                description=f'Deleted project "{name}"',
                target_id=project_id,
                target_type="project",
                metadata={"project_id": project_id, "project_name": name},
            )
        )
        self._store.remove_one(Collection.PROJECTS, project_id)
        self._store.evict_project(project_id)
        return project_id

    async def join_project(self, code: str) -> Outcome[Redemption]:
        return await self._report("join_project", self._join_project(code))

    async def _join_project(self, code: str) -> Redemption:
        redemption = await self.join.redeem(code, self.user_id)
        project = redemption.project
        await self._record(
            ActivityDraft(
                action=ActivityAction.JOINED_PROJECT,
                description=f'Joined project "{project.name}"',
                project_id=project.id,
                target_id=project.id,
                target_type="project",
                metadata={"project_name": project.name, "role": str(redemption.membership.role)},
            )
        )
        self._store.upsert_one(Collection.PROJECTS, project)
        return redemption

    async def get_join_code(self, project_id: str) -> Outcome[JoinCode | None]:
        return await self._report("get_join_code", self.join.active_code(project_id))

    async def regenerate_join_code(self, project_id: str) -> Outcome[JoinCode]:
        return await self._report("regenerate_join_code", self._regenerate_join_code(project_id))

    async def _regenerate_join_code(self, project_id: str) -> JoinCode:
        project = await self._load_project(project_id)
        if not project.is_team:
            raise ValidationError("Only team projects have join codes")
        await self._require_manager(project)
        async with self._serialized(f"code:{project_id}"):
            return await self.join.mint_code(project_id, self.user_id)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def fetch_tasks(self, project_id: str, guard: Liveness | None = None) -> Outcome[list[Task]]:
        outcome = await self._report("fetch_tasks", self.tasks.list_for_project(project_id))
        if not outcome.ok:
            return outcome
        if guard is not None and not guard.alive:
            return Outcome.success(outcome.value, discarded=True)
        self._store.replace(Collection.TASKS, outcome.value or [])
        self._store.set_active_project(project_id)
        return outcome

    async def create_task(self, data: TaskInput | dict[str, Any]) -> Outcome[Task]:
        return await self._report("create_task", self._create_task(data))

    async def _create_task(self, data: TaskInput | dict[str, Any]) -> Task:
        payload = validate_input(TaskInput, data)
        project = await self._load_project(payload.project_id)
        await self._require_member(project)

        async with self._serialized(_positions_key(project.id)):
            position = await self.tasks.next_position(project.id)
            task = await self.tasks.create(payload, self.user_id, position)

        await self._record(
            ActivityDraft(
                action=ActivityAction.CREATED_TASK,
                description=f'Created task "{task.title}"',
                project_id=task.project_id,
                task_id=task.id,
                target_id=task.id,
                target_type="task",
                metadata={"title": task.title, "priority": str(task.priority)},
            )
        )
        if task.assigned_to and task.assigned_to != self.user_id:
            await self._record_assignment(task)
        self._cache_task(task)
        return task

    async def _record_assignment(self, task: Task) -> None:
        await self._record(
            ActivityDraft(
                action=ActivityAction.ASSIGNED_TASK,
                description=f'Assigned task "{task.title}"',
                project_id=task.project_id,
                task_id=task.id,
                target_id=task.assigned_to,
                target_type="user",
                metadata={"assignee": task.assigned_to},
            )
        )

    async def update_task(self, task_id: str, patch: TaskPatch | dict[str, Any]) -> Outcome[Task]:
        return await self._report("update_task", self._update_task(task_id, patch))

    async def _update_task(self, task_id: str, patch: TaskPatch | dict[str, Any]) -> Task:
        changes = validate_input(TaskPatch, patch)
        row = changes.to_row()
        if not row:
            raise ValidationError("Nothing to update")

        async with self._serialized(task_id):
            if changes.status is None:
                task = await self.tasks.update(task_id, row)
            else:
                current = await self._load_task(task_id)
                if current.status == changes.status:
                    task = await self.tasks.update(task_id, row)
                else:
                    # Entering a new column: append at its end.
                    async with self._serialized(_positions_key(current.project_id)):
                        row["position"] = await self.tasks.next_position(current.project_id)
                        task = await self.tasks.update(task_id, row)

        if changes.status == TaskStatus.COMPLETED:
            await self._record(
                ActivityDraft(
                    action=ActivityAction.COMPLETED_TASK,
                    description=f'Completed task "{task.title}"',
                    project_id=task.project_id,
                    task_id=task.id,
                    target_id=task.id,
                    target_type="task",
                    metadata={"title": task.title},
                )
            )
        else:
            await self._record(
                ActivityDraft(
                    action=ActivityAction.UPDATED_TASK,
                    description=f'Updated task "{task.title}"',
                    project_id=task.project_id,
                    task_id=task.id,
                    target_id=task.id,
                    target_type="task",
                    metadata={"fields": sorted(changes.to_row())},
                )
            )
        if "assigned_to" in row and task.assigned_to and task.assigned_to != self.user_id:
            await self._record_assignment(task)
        self._cache_task(task)
        return task

    async def move_task(self, task_id: str, status: TaskStatus | str) -> Outcome[Task]:
        """Move a task to another column (appended at the end)."""
        return await self.update_task(task_id, {"status": status})

    async def delete_task(self, task_id: str) -> Outcome[str]:
        return await self._report("delete_task", self._delete_task(task_id))

    async def _delete_task(self, task_id: str) -> str:
        async with self._serialized(task_id):
            task = await self._load_task(task_id)
            # Usability check only; the remote store enforces the same rule.
            if task.created_by != self.user_id:
                raise PermissionDeniedError("Only the task creator can delete this task")
            await self.tasks.delete(task_id)
        await self._record(
            ActivityDraft(
                action=ActivityAction.DELETED_TASK,
                description=f'Deleted task "{task.title}"',
                project_id=task.project_id,
                target_id=task_id,
                target_type="task",
                metadata={"task_id": task_id, "title": task.title},
            )
        )
        self._store.remove_one(Collection.TASKS, task_id)
        return task_id

    # ------------------------------------------------------------------
    # Team
    # ------------------------------------------------------------------

    async def fetch_members(self, guard: Liveness | None = None) -> Outcome[list[TeamMember]]:
        outcome = await self._report("fetch_members", self._fetch_members())
        if not outcome.ok:
            return outcome
        if guard is not None and not guard.alive:
            return Outcome.success(outcome.value, discarded=True)
        self._store.replace(Collection.MEMBERS, outcome.value or [])
        return outcome

    async def _fetch_members(self) -> list[TeamMember]:
        visible = await self.projects.list_visible(self.user_id)
        memberships = await self.memberships.list_for_projects(p.id for p in visible)
        profiles = {p.id: p for p in await self.profiles.list_by_ids(m.user_id for m in memberships)}
        members: list[TeamMember] = []
        for membership in memberships:
            profile = profiles.get(membership.user_id)
            if profile is None or not profile.email:
                continue
            members.append(TeamMember.from_parts(membership, profile))
        return members

    async def invite_member(
        self,
        email: str,
        role: MemberRole | str = MemberRole.MEMBER,
        project_id: str | None = None,
    ) -> Outcome[TeamMember]:
        return await self._report("invite_member", self._invite_member(email, role, project_id))

    async def _invite_target(self, project_id: str | None) -> Project:
        target_id = project_id or self._store.active_project_id
        if target_id:
            return await self._load_project(target_id)
        created = await self.projects.list_created_by(self.user_id, limit=1)
        if not created:
            raise ValidationError("No project found to invite member to")
        return created[0]

    async def _invite_member(self, email: str, role: MemberRole | str, project_id: str | None) -> TeamMember:
        invite = validate_input(InviteInput, {"email": email, "role": role, "project_id": project_id})
        project = await self._invite_target(invite.project_id)
        await self._require_manager(project)

        profile = await self.profiles.find_by_email(invite.email)
        if profile is None:
            raise ValidationError("User not found. They need to create an account first.")
        if await self.memberships.get(project.id, profile.id) is not None:
            raise ConflictError("User is already a project member")

        membership = await self.memberships.add(project.id, profile.id, invite.role)
        await self._record(
            ActivityDraft(
                action=ActivityAction.ADDED_MEMBER,
                description=f'Added {profile.display_name} to "{project.name}"',
                project_id=project.id,
                target_id=profile.id,
                target_type="user",
                metadata={"email": profile.email, "role": str(membership.role)},
            )
        )
        member = TeamMember.from_parts(membership, profile)
        self._store.upsert_one(Collection.MEMBERS, member)
        return member

    async def _load_membership(self, membership_id: str) -> Membership:
        membership = await self.memberships.get_by_id(membership_id)
        if membership is None:
            raise PermissionDeniedError("Membership not found or you do not have access to it")
        return membership

    async def remove_member(self, membership_id: str) -> Outcome[str]:
        return await self._report("remove_member", self._remove_member(membership_id))

    async def _remove_member(self, membership_id: str) -> str:
        async with self._serialized(membership_id):
            membership = await self._load_membership(membership_id)
            project = await self._load_project(membership.project_id)
            if membership.user_id == project.created_by:
                raise PermissionDeniedError("The project creator cannot be removed")
            # Anyone may leave; removing someone else needs a manager.
            if membership.user_id != self.user_id:
                await self._require_manager(project)
            await self.memberships.remove(membership_id)
        await self._record(
            ActivityDraft(
                action=ActivityAction.REMOVED_MEMBER,
                description=f'Removed a member from "{project.name}"',
                project_id=project.id,
                target_id=membership.user_id,
                target_type="user",
                metadata={"membership_id": membership_id},
            )
        )
        self._store.remove_one(Collection.MEMBERS, membership_id)
        return membership_id

    async def update_member_role(self, membership_id: str, role: MemberRole | str) -> Outcome[Membership]:
        return await self._report("update_member_role", self._update_member_role(membership_id, role))

    async def _update_member_role(self, membership_id: str, role: MemberRole | str) -> Membership:
        try:
            new_role = MemberRole(role)
        except ValueError as exc:
            raise ValidationError(f"Unknown role '{role}'") from exc

        async with self._serialized(membership_id):
            membership = await self._load_membership(membership_id)
            project = await self._load_project(membership.project_id)
            await self._require_manager(project)
            updated = await self.memberships.update_role(membership_id, new_role)
        await self._record(
            ActivityDraft(
                action=ActivityAction.UPDATED_MEMBER_ROLE,
                description=f'Changed a member role to {new_role} in "{project.name}"',
                project_id=project.id,
                target_id=updated.user_id,
                target_type="user",
                metadata={"membership_id": membership_id, "role": str(new_role)},
            )
        )
        cached: TeamMember | None = self._store.get(Collection.MEMBERS, membership_id)
        if cached is not None:
            self._store.upsert_one(Collection.MEMBERS, cached.with_role(new_role))
        return updated

    # ------------------------------------------------------------------
    # Activity and profile
    # ------------------------------------------------------------------

    async def fetch_activities(
        self,
        project_id: str | None = None,
        limit: int | None = None,
        guard: Liveness | None = None,
    ) -> Outcome[list[ActivityEntry]]:
        outcome = await self._report(
            "fetch_activities",
            self.activity.list_recent(project_id, limit or self.feed_limit),
        )
        if not outcome.ok:
            return outcome
        if guard is not None and not guard.alive:
            return Outcome.success(outcome.value, discarded=True)
        self._store.replace(Collection.ACTIVITY, outcome.value or [])
        return outcome

    async def log_activity(self, entry: ActivityDraft) -> Outcome[ActivityEntry]:
        """Append an entry on request; unlike side-effect logging, failures are reported."""
        return await self._report("log_activity", self._log_activity(entry))

    async def _log_activity(self, entry: ActivityDraft) -> ActivityEntry:
        if not str(entry.action).strip():
            raise ValidationError("Activity action is required")
        if not entry.description.strip():
            raise ValidationError("Activity description is required")
        appended = await self.activity.append(self.user_id, entry, self.clock())
        self._store.upsert_one(Collection.ACTIVITY, appended)
        return appended

    async def fetch_profile(self) -> Outcome[Profile]:
        return await self._report("fetch_profile", self._fetch_profile())

    async def _fetch_profile(self) -> Profile:
        profile = await self.profiles.get(self.user_id)
        if profile is None:
            raise PermissionDeniedError("Profile not found or you do not have access to it")
        return profile

    async def update_profile(self, patch: ProfilePatch | dict[str, Any]) -> Outcome[Profile]:
        return await self._report("update_profile", self._update_profile(patch))

    async def _update_profile(self, patch: ProfilePatch | dict[str, Any]) -> Profile:
        changes = validate_input(ProfilePatch, patch)
        if not changes.to_row():
            raise ValidationError("Nothing to update")
        async with self._serialized(self.user_id):
            return await self.profiles.update(self.user_id, changes)
