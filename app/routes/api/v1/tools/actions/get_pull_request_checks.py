import pydantic

from app.devops.client import IDevOpsClient
from app.pull_requests.checks import PullRequestChecks, get_pull_request_checks
from app.routes.api.v1.tools.validation import validate_arguments


class Arguments(pydantic.BaseModel):
    pull_request_id: int = pydantic.Field(gt=0)


Response = PullRequestChecks


@validate_arguments(Arguments)
async def tool_get_pull_request_checks(
    client: IDevOpsClient, arguments: Arguments
) -> Response:
    return await get_pull_request_checks(client, arguments.pull_request_id)
