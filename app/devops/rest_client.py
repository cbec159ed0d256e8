import httpx
import jsonschema
import logging
import pydantic
import typing
import urllib.parse
import validators

from app.errors import NotFoundError, UpstreamError
from app.devops.client import (
    ChangeEntry,
    CommitChange,
    CommitRequest,
    IDevOpsClient,
    Iteration,
    PushResult,
    UntypedRecord,
)
from app.devops.schemas.responses import (
    ITERATION_CHANGES_SCHEMA,
    ITERATIONS_SCHEMA,
    PUSH_SCHEMA,
    RECORD_LIST_SCHEMA,
    RECORD_SCHEMA,
    REFS_SCHEMA,
)

_POLICY_API_VERSION = "7.1-preview.1"

_BRANCH_PREFIX = "refs/heads/"

# page size used when walking iteration changes
_CHANGES_PAGE = 100


class AzureDevOpsClientConfig(pydantic.BaseModel):
    org_url: str
    project: str
    repository: str
    token: str
    api_version: str = "7.1"
    timeout: float = 30


class AzureDevOpsRestClient(IDevOpsClient):
    _conf: AzureDevOpsClientConfig
    _http: httpx.AsyncClient

    def __init__(
        self,
        cfg: AzureDevOpsClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__()
        _assert_valid_url(cfg.org_url)

        project = urllib.parse.quote(cfg.project, safe="")
        self._conf = cfg
        self._http = httpx.AsyncClient(
            base_url=f"{cfg.org_url.rstrip('/')}/{project}/_apis/",
            auth=("", cfg.token),
            timeout=cfg.timeout,
            transport=transport,
        )

    def config(self) -> AzureDevOpsClientConfig:
        return self._conf

    def project_id(self) -> str:
        return self._conf.project

    async def fetch_content(self, object_id: str) -> str:
        operation = f"fetch blob {object_id}"
        response = await self._request(
            operation,
            "GET",
            f"{self._repo_path()}/blobs/{object_id}",
            params={"$format": "octetStream"},
        )
        return _decode(operation, response.content)

    async def fetch_item_content(self, path: str, commit_id: str) -> str:
        operation = f"fetch {path} at {commit_id}"
        response = await self._request(
            operation,
            "GET",
            f"{self._repo_path()}/items",
            params={
                "path": path,
                "versionDescriptor.version": commit_id,
                "versionDescriptor.versionType": "commit",
                "$format": "octetStream",
            },
        )
        return _decode(operation, response.content)

    async def list_iterations(self, pull_request_id: int) -> list[Iteration]:
        data = await self._json(
            f"list iterations of pull request {pull_request_id}",
            ITERATIONS_SCHEMA,
            "GET",
            f"{self._repo_path()}/pullRequests/{pull_request_id}/iterations",
        )
        return [Iteration(id=item["id"]) for item in data["value"]]

    async def list_change_entries(
        self, pull_request_id: int, iteration_id: int
    ) -> list[ChangeEntry]:
        operation = f"list changes of pull request {pull_request_id} iteration {iteration_id}"
        path = f"{self._repo_path()}/pullRequests/{pull_request_id}/iterations/{iteration_id}/changes"

        entries = list[ChangeEntry]()
        skip = 0
        while True:
            data = await self._json(
                operation,
                ITERATION_CHANGES_SCHEMA,
                "GET",
                path,
                params={"$top": str(_CHANGES_PAGE), "$skip": str(skip)},
            )
            entries.extend(_change_entry(raw) for raw in data.get("changeEntries", []))

            next_skip = data.get("nextSkip") or 0
            if next_skip <= skip or not data.get("nextTop"):
                return entries
            skip = next_skip

    async def list_policy_evaluations(self, artifact_id: str) -> list[UntypedRecord]:
        data = await self._json(
            f"list policy evaluations of {artifact_id}",
            RECORD_LIST_SCHEMA,
            "GET",
            "policy/evaluations",
            params={"artifactId": artifact_id, "api-version": _POLICY_API_VERSION},
        )
        return list(data["value"])

    async def list_statuses(self, pull_request_id: int) -> list[UntypedRecord]:
        data = await self._json(
            f"list statuses of pull request {pull_request_id}",
            RECORD_LIST_SCHEMA,
            "GET",
            f"{self._repo_path()}/pullRequests/{pull_request_id}/statuses",
        )
        return list(data["value"])

    async def resolve_branch_tip(self, branch_name: str) -> str:
        branch = branch_name.removeprefix(_BRANCH_PREFIX)
        data = await self._json(
            f"resolve branch {branch}",
            REFS_SCHEMA,
            "GET",
            f"{self._repo_path()}/refs",
            params={"filter": f"heads/{branch}"},
        )

        # the filter is a prefix match
        for ref in data["value"]:
            if ref["name"] == f"{_BRANCH_PREFIX}{branch}":
                return str(ref["objectId"])

        raise NotFoundError(f"Branch {branch} not found in {self._conf.repository}")

    async def submit_push(self, request: CommitRequest) -> PushResult:
        data = await self._json(
            f"push to {request.branch_name}",
            PUSH_SCHEMA,
            "POST",
            f"{self._repo_path()}/pushes",
            body=_push_body(request),
        )
        return PushResult(
            push_id=data.get("pushId"),
            commit_ids=[
                commit["commitId"]
                for commit in data.get("commits", [])
                if "commitId" in commit
            ],
        )

    async def get_build(self, build_id: int) -> UntypedRecord:
        data: UntypedRecord = await self._json(
            f"get build {build_id}",
            RECORD_SCHEMA,
            "GET",
            f"build/builds/{build_id}",
        )
        return data

    async def get_pipeline_run(
        self, run_id: int, pipeline_id: int | None
    ) -> UntypedRecord:
        path = (
            f"pipelines/{pipeline_id}/runs/{run_id}"
            if pipeline_id is not None
            else f"pipelines/runs/{run_id}"
        )
        data: UntypedRecord = await self._json(
            f"get pipeline run {run_id}", RECORD_SCHEMA, "GET", path
        )
        return data

    async def close(self) -> None:
        await self._http.aclose()

    def _repo_path(self) -> str:
        repository = urllib.parse.quote(self._conf.repository, safe="")
        return f"git/repositories/{repository}"

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        body: UntypedRecord | None = None,
    ) -> httpx.Response:
        log = logging.getLogger(__name__)

        query = {"api-version": self._conf.api_version}
        query.update(params or dict())

        log.debug(f"{method} {path} to {operation}")

        try:
            response = await self._http.request(method, path, params=query, json=body)
        except httpx.HTTPError as e:
            raise UpstreamError(operation, str(e))

        if response.status_code == 404:
            raise NotFoundError(f"Not found while trying to {operation}")

        if response.is_error:
            raise UpstreamError(
                operation,
                f"Received error code {response.status_code}:{response.reason_phrase}",
            )

        return response

    async def _json(
        self,
        operation: str,
        schema: UntypedRecord,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        body: UntypedRecord | None = None,
    ) -> typing.Any:
        response = await self._request(operation, method, path, params, body)

        try:
            data = response.json()
            jsonschema.validate(data, schema)
        except (ValueError, jsonschema.ValidationError) as e:
            raise UpstreamError(operation, f"Unexpected response: {str(e)}")

        return data


###########
# private #
###########


def _assert_valid_url(url: str) -> None:
    if not validators.url(url):
        raise ValueError(f"Invalid organization url : {url}")


def _decode(operation: str, content: bytes) -> str:
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        raise UpstreamError(operation, "content is not UTF-8 text")


def _change_entry(raw: UntypedRecord) -> ChangeEntry:
    item = raw.get("item") or dict()
    change_type = raw.get("changeType")

    old_object_id = item.get("originalObjectId")
    new_object_id = item.get("objectId")

    # change types are comma separated flags, e.g. "edit, rename"
    flags = {flag.strip() for flag in (change_type or "").split(",")}
    if "add" in flags:
        old_object_id = None
    if "delete" in flags:
        new_object_id = None

    return ChangeEntry(
        path=item.get("path"),
        original_path=raw.get("originalPath"),
        old_object_id=old_object_id,
        new_object_id=new_object_id,
        change_type=change_type,
    )


def _push_change(change: CommitChange) -> UntypedRecord:
    body: UntypedRecord = {"changeType": change.change_type, "item": {"path": change.path}}
    if change.new_content is not None:
        body["newContent"] = {"content": change.new_content, "contentType": "rawtext"}
    return body


def _push_body(request: CommitRequest) -> UntypedRecord:
    branch = request.branch_name.removeprefix(_BRANCH_PREFIX)
    return {
        "refUpdates": [
            {"name": f"{_BRANCH_PREFIX}{branch}", "oldObjectId": request.base_commit_id}
        ],
        "commits": [
            {
                "comment": request.message,
                "changes": [_push_change(change) for change in request.changes],
            }
        ],
    }
