import asyncio
import logging
import pydantic
import typing

from app.errors import DevOpsError, NotFoundError, PatchConflictError
from app.devops.client import CommitChange, CommitRequest, IDevOpsClient, PushResult
from app.patch.applier import apply_patch
from app.patch.models import DiffDocument
from app.patch.parser import parse_patch

ChangeType = typing.Literal["add", "edit", "delete"]


class PatchChange(pydantic.BaseModel):
    path: str
    patch: str


def classify_change(base: str, result: str, document: DiffDocument) -> ChangeType:
    if not result and (base or document.is_deletion()):
        return "delete"
    if not base and (result or document.is_new_file()):
        return "add"
    return "edit"


class CommitConstructor:
    """Turns a batch of per-file patches into one atomic commit.

    Every patch is parsed and applied against the same base commit before
    anything is pushed; a single failing file fails the whole batch.
    """

    _client: IDevOpsClient
    _max_concurrency: int

    def __init__(self, client: IDevOpsClient, max_concurrency: int = 8) -> None:
        assert max_concurrency > 0, "Invalid concurrency limit"

        self._client = client
        self._max_concurrency = max_concurrency

    async def construct(
        self,
        branch_name: str,
        message: str,
        changes: list[PatchChange],
        base_commit_id: str | None = None,
    ) -> CommitRequest:
        log = logging.getLogger(__name__)

        if len(changes) == 0:
            raise ValueError("Nothing to commit: no changes provided")

        paths = [change.path for change in changes]
        duplicates = sorted({path for path in paths if paths.count(path) > 1})
        if duplicates:
            raise ValueError(f"Paths changed more than once: {', '.join(duplicates)}")

        # a pinned base still requires the branch to exist
        tip = await self._client.resolve_branch_tip(branch_name)
        if base_commit_id is None:
            base_commit_id = tip

        semaphore = asyncio.Semaphore(self._max_concurrency)
        commit_changes = await asyncio.gather(
            *[self._prepare(change, base_commit_id, semaphore) for change in changes]
        )

        log.info(
            f"Assembled commit of {len(commit_changes)} changes on {branch_name} at {base_commit_id}"
        )

        return CommitRequest(
            branch_name=branch_name,
            base_commit_id=base_commit_id,
            message=message,
            changes=list(commit_changes),
        )

    async def commit(
        self,
        branch_name: str,
        message: str,
        changes: list[PatchChange],
        base_commit_id: str | None = None,
    ) -> PushResult:
        request = await self.construct(branch_name, message, changes, base_commit_id)

        result = await self._client.submit_push(request)

        logging.getLogger(__name__).info(
            f"Pushed {len(request.changes)} changes to {branch_name}: {result.commit_ids}"
        )

        return result

    async def _prepare(
        self, change: PatchChange, commit_id: str, semaphore: asyncio.Semaphore
    ) -> CommitChange:
        try:
            document = parse_patch(change.patch)

            async with semaphore:
                base = await self._fetch_base(change.path, commit_id)

            result = apply_patch(base or "", document)
            change_type = classify_change(base or "", result, document)

            if base is None and change_type != "add":
                raise PatchConflictError(
                    f"Patch changes {change.path} but the file does not exist at {commit_id}"
                )
        except DevOpsError as e:
            logging.getLogger(__name__).warning(f"{change.path}: {str(e)}")
            raise

        return CommitChange(
            path=change.path,
            change_type=change_type,
            new_content=None if change_type == "delete" else result,
        )

    async def _fetch_base(self, path: str, commit_id: str) -> str | None:
        try:
            return await self._client.fetch_item_content(path, commit_id)
        except NotFoundError:
            return None
