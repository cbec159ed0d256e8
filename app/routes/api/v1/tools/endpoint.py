import enum
import fastapi
import logging
import typing

from app.devops.client import IDevOpsClient
from app.pull_requests.changes import ChangeCollector
from app.repositories.commit import CommitConstructor
from app.routes.api.v1.tools.errors import http_error

from app.routes.api.v1.tools.actions.get_pull_request_changes import (
    tool_get_pull_request_changes,
    Response as PullRequestChangesResponse,
)
from app.routes.api.v1.tools.actions.get_pull_request_checks import (
    tool_get_pull_request_checks,
    Response as PullRequestChecksResponse,
)
from app.routes.api.v1.tools.actions.create_commit import (
    tool_create_commit,
    Response as CreateCommitResponse,
)
from app.routes.api.v1.tools.actions.get_pipeline_run import (
    tool_get_pipeline_run,
    Response as PipelineRunResponse,
)


class ToolName(str, enum.Enum):
    GET_PULL_REQUEST_CHANGES = "get_pull_request_changes"
    GET_PULL_REQUEST_CHECKS = "get_pull_request_checks"
    CREATE_COMMIT = "create_commit"
    GET_PIPELINE_RUN = "get_pipeline_run"


Response = (
    PullRequestChangesResponse
    | PullRequestChecksResponse
    | CreateCommitResponse
    | PipelineRunResponse
)


async def endpoint_api_v1_tools(
    client: IDevOpsClient,
    collector: ChangeCollector,
    constructor: CommitConstructor,
    tool: str,
    arguments: dict[str, typing.Any],
) -> Response:
    """Entrypoint for the remote tools

    Args:
        client (IDevOpsClient): hosting service client
        collector (ChangeCollector): pull request changes collector
        constructor (CommitConstructor): commit constructor
        tool (str): name of the tool to call. Can be one of the `ToolName` enum
        arguments (dict[str, typing.Any]): raw tool arguments, validated by the tool

    Raises:
        fastapi.HTTPException: in case of internal server errors or invalid user inputs

    Returns:
        Response: tool result, depends on the tool
    """

    _validate_tool(tool)

    logging.getLogger(__name__).info(f"Calling tool {tool}")

    try:
        if ToolName.GET_PULL_REQUEST_CHANGES.value == tool:
            return await tool_get_pull_request_changes(
                collector=collector, arguments=arguments
            )

        if ToolName.GET_PULL_REQUEST_CHECKS.value == tool:
            return await tool_get_pull_request_checks(
                client=client, arguments=arguments
            )

        if ToolName.CREATE_COMMIT.value == tool:
            return await tool_create_commit(
                constructor=constructor, arguments=arguments
            )

        if ToolName.GET_PIPELINE_RUN.value == tool:
            return await tool_get_pipeline_run(client=client, arguments=arguments)
    except Exception as e:
        raise http_error(tool, e)

    raise fastapi.HTTPException(
        status_code=500,
        detail=f"[api_v1_tools_endpoint] Unhandled tool={tool}",
    )


###########
# private #
###########


def _validate_tool(tool: str) -> None:
    if tool not in [e.value for e in ToolName]:
        raise fastapi.HTTPException(
            status_code=400,
            detail=f"Invalid tool value: tool={tool}",
        )
