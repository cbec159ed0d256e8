import abc
import pydantic
import typing

UntypedRecord = dict[str, typing.Any]


class Iteration(pydantic.BaseModel):
    id: int


class ChangeEntry(pydantic.BaseModel):
    path: str | None = None
    original_path: str | None = None
    old_object_id: str | None = None
    new_object_id: str | None = None
    change_type: str | None = None

    def effective_path(self) -> str | None:
        return self.path or self.original_path


class CommitChange(pydantic.BaseModel):
    path: str
    change_type: typing.Literal["add", "edit", "delete"]
    new_content: str | None = None


class CommitRequest(pydantic.BaseModel):
    branch_name: str
    base_commit_id: str
    message: str
    changes: list[CommitChange]


class PushResult(pydantic.BaseModel):
    push_id: int | None = None
    commit_ids: list[str] = []


class IDevOpsClient(abc.ABC):
    """Operations of the hosting service, bound to one project and repository"""

    @abc.abstractmethod
    def project_id(self) -> str:
        pass

    @abc.abstractmethod
    async def fetch_content(self, object_id: str) -> str:
        pass

    @abc.abstractmethod
    async def fetch_item_content(self, path: str, commit_id: str) -> str:
        pass

    @abc.abstractmethod
    async def list_iterations(self, pull_request_id: int) -> list[Iteration]:
        pass

    @abc.abstractmethod
    async def list_change_entries(
        self, pull_request_id: int, iteration_id: int
    ) -> list[ChangeEntry]:
        pass

    @abc.abstractmethod
    async def list_policy_evaluations(self, artifact_id: str) -> list[UntypedRecord]:
        pass

    @abc.abstractmethod
    async def list_statuses(self, pull_request_id: int) -> list[UntypedRecord]:
        pass

    @abc.abstractmethod
    async def resolve_branch_tip(self, branch_name: str) -> str:
        pass

    @abc.abstractmethod
    async def submit_push(self, request: CommitRequest) -> PushResult:
        pass

    @abc.abstractmethod
    async def get_build(self, build_id: int) -> UntypedRecord:
        pass

    @abc.abstractmethod
    async def get_pipeline_run(
        self, run_id: int, pipeline_id: int | None
    ) -> UntypedRecord:
        pass

    async def close(self) -> None:
        pass
