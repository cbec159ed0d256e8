import asyncio
import datetime
import pydantic
import re
import typing
import urllib.parse

from app.errors import DevOpsError, UpstreamError
from app.devops.client import IDevOpsClient, UntypedRecord
from app.pull_requests.changes import code_review_artifact_id

_STATUS_STATES = {
    0: "notSet",
    1: "pending",
    2: "succeeded",
    3: "failed",
    4: "error",
    5: "notApplicable",
    6: "partiallySucceeded",
}

_EVALUATION_STATUSES = {
    0: "queued",
    1: "running",
    2: "approved",
    3: "rejected",
    4: "notApplicable",
    5: "broken",
}

_PIPELINE_RUN_PATH = re.compile(r"/_apis/pipelines/(?P<pipeline>\d+)/runs/(?P<run>\d+)")

# query parameter -> PipelineReference field
_PIPELINE_QUERY_KEYS = {
    "pipelineId": "pipeline_id",
    "runId": "run_id",
    "buildId": "build_id",
    "definitionId": "definition_id",
}


class PipelineReference(pydantic.BaseModel):
    pipeline_id: int | None = None
    run_id: int | None = None
    build_id: int | None = None
    definition_id: int | None = None


class StatusCheck(pydantic.BaseModel):
    id: int | None = None
    state: str | None = None
    description: str | None = None
    context: UntypedRecord | None = None
    target_url: str | None = None
    created: datetime.datetime | None = None
    updated: datetime.datetime | None = None
    pipeline: PipelineReference | None = None


class PolicyEvaluation(pydantic.BaseModel):
    evaluation_id: str | None = None
    status: str | None = None
    is_blocking: bool | None = None
    is_enabled: bool | None = None
    policy_type: str | None = None
    display_name: str | None = None
    target_url: str | None = None
    message: str | None = None
    pipeline: PipelineReference | None = None


class PullRequestChecks(pydantic.BaseModel):
    statuses: list[StatusCheck]
    policy_evaluations: list[PolicyEvaluation]


async def get_pull_request_checks(
    client: IDevOpsClient, pull_request_id: int
) -> PullRequestChecks:
    """Status checks and policy evaluations of a pull request

    Both record kinds get a pipeline reference when their urls or settings
    point at a build or a pipeline run.
    """

    try:
        statuses, evaluations = await asyncio.gather(
            client.list_statuses(pull_request_id),
            client.list_policy_evaluations(
                code_review_artifact_id(client.project_id(), pull_request_id)
            ),
        )

        return PullRequestChecks(
            statuses=[_status_check(raw) for raw in statuses],
            policy_evaluations=[_policy_evaluation(raw) for raw in evaluations],
        )
    except DevOpsError:
        raise
    except Exception as e:
        raise UpstreamError("get pull request checks", str(e))


def parse_pipeline_reference(url: str | None) -> PipelineReference | None:
    if not url:
        return None

    parsed = urllib.parse.urlparse(url)
    fields = dict[str, int]()

    match = _PIPELINE_RUN_PATH.search(parsed.path)
    if match is not None:
        fields["pipeline_id"] = int(match.group("pipeline"))
        fields["run_id"] = int(match.group("run"))

    query = urllib.parse.parse_qs(parsed.query)
    for key, field in _PIPELINE_QUERY_KEYS.items():
        value = coerce_id(query.get(key, [None])[0])
        if value is not None and field not in fields:
            fields[field] = value

    if len(fields) == 0:
        return None

    return PipelineReference(**fields)


def coerce_id(value: typing.Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


###########
# private #
###########


def _enum_name(value: typing.Any, names: dict[int, str]) -> str | None:
    if isinstance(value, int):
        return names.get(value, str(value))
    return value


def _status_check(raw: UntypedRecord) -> StatusCheck:
    target_url = raw.get("targetUrl")
    return StatusCheck(
        id=raw.get("id"),
        state=_enum_name(raw.get("state"), _STATUS_STATES),
        description=raw.get("description"),
        context=raw.get("context"),
        target_url=target_url,
        created=raw.get("creationDate"),
        updated=raw.get("updatedDate"),
        pipeline=parse_pipeline_reference(target_url),
    )


def _policy_evaluation(raw: UntypedRecord) -> PolicyEvaluation:
    configuration = raw.get("configuration") or dict()
    settings = configuration.get("settings") or dict()
    policy_type = (configuration.get("type") or dict()).get("displayName")
    context = raw.get("context") or dict()
    target_url = context.get("targetUrl")

    pipeline = parse_pipeline_reference(target_url) or PipelineReference()
    if pipeline.definition_id is None:
        pipeline.definition_id = coerce_id(settings.get("buildDefinitionId"))
    if pipeline.build_id is None:
        pipeline.build_id = coerce_id(context.get("buildId"))

    return PolicyEvaluation(
        evaluation_id=raw.get("evaluationId"),
        status=_enum_name(raw.get("status"), _EVALUATION_STATUSES),
        is_blocking=configuration.get("isBlocking"),
        is_enabled=configuration.get("isEnabled"),
        policy_type=policy_type,
        display_name=settings.get("displayName") or policy_type,
        target_url=target_url,
        message=context.get("message"),
        pipeline=pipeline if pipeline != PipelineReference() else None,
    )
