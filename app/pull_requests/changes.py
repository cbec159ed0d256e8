import asyncio
import logging
import pydantic

from app.errors import NotFoundError
from app.devops.client import ChangeEntry, IDevOpsClient, UntypedRecord
from app.patch.differ import DEFAULT_CONTEXT_LINES, diff, format_patch


class FileChange(pydantic.BaseModel):
    path: str
    original_path: str | None = None
    patch: str
    added_lines: int
    removed_lines: int


class PullRequestChanges(pydantic.BaseModel):
    iteration_id: int
    files: list[FileChange]
    evaluations: list[UntypedRecord]


def code_review_artifact_id(project_id: str, pull_request_id: int) -> str:
    return f"vstfs:///CodeReview/CodeReviewId/{project_id}/{pull_request_id}"


class ChangeCollector:
    """Unified diffs of every file changed by the latest pull request iteration"""

    _client: IDevOpsClient
    _context_lines: int
    _max_concurrency: int

    def __init__(
        self,
        client: IDevOpsClient,
        context_lines: int = DEFAULT_CONTEXT_LINES,
        max_concurrency: int = 8,
    ) -> None:
        assert max_concurrency > 0, "Invalid concurrency limit"

        self._client = client
        self._context_lines = context_lines
        self._max_concurrency = max_concurrency

    async def collect(self, pull_request_id: int) -> PullRequestChanges:
        """Collect file patches and policy evaluations of a pull request

        Args:
            pull_request_id (int): pull request to inspect

        Raises:
            NotFoundError: the pull request has no iterations

        Returns:
            PullRequestChanges: patches in the server's order plus raw evaluations
        """

        log = logging.getLogger(__name__)

        iterations = await self._client.list_iterations(pull_request_id)
        if len(iterations) == 0:
            raise NotFoundError(
                f"No iterations found for pull request {pull_request_id}"
            )

        latest = iterations[-1]
        entries = await self._client.list_change_entries(pull_request_id, latest.id)

        selected = list[ChangeEntry]()
        for entry in entries:
            if entry.effective_path() is None:
                log.warning(
                    f"Skipping change entry without a path in pull request {pull_request_id}"
                )
                continue
            selected.append(entry)

        log.info(
            f"Collecting {len(selected)} file changes of pull request {pull_request_id} iteration {latest.id}"
        )

        # bounds in-flight content fetches, gather keeps the entries' order
        semaphore = asyncio.Semaphore(self._max_concurrency)
        artifact_id = code_review_artifact_id(
            self._client.project_id(), pull_request_id
        )

        files, evaluations = await asyncio.gather(
            asyncio.gather(
                *[self._file_change(entry, semaphore) for entry in selected]
            ),
            self._client.list_policy_evaluations(artifact_id),
        )

        return PullRequestChanges(
            iteration_id=latest.id, files=list(files), evaluations=evaluations
        )

    async def _file_change(
        self, entry: ChangeEntry, semaphore: asyncio.Semaphore
    ) -> FileChange:
        path = entry.effective_path()
        assert path is not None

        old_text, new_text = await asyncio.gather(
            self._fetch(entry.old_object_id, semaphore),
            self._fetch(entry.new_object_id, semaphore),
        )

        document = diff(
            old_label=(entry.original_path or path) if entry.old_object_id else None,
            new_label=path if entry.new_object_id else None,
            old_text=old_text,
            new_text=new_text,
            context_lines=self._context_lines,
        )

        logging.getLogger(__name__).debug(
            f"{path}: {len(document.hunks)} hunks, +{document.added_lines()} -{document.removed_lines()}"
        )

        return FileChange(
            path=path,
            original_path=entry.original_path,
            patch=format_patch(document),
            added_lines=document.added_lines(),
            removed_lines=document.removed_lines(),
        )

    async def _fetch(self, object_id: str | None, semaphore: asyncio.Semaphore) -> str:
        if not object_id:
            return ""

        async with semaphore:
            return await self._client.fetch_content(object_id)
