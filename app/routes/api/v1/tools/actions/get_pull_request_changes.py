import pydantic

from app.pull_requests.changes import ChangeCollector, PullRequestChanges
from app.routes.api.v1.tools.validation import validate_arguments


class Arguments(pydantic.BaseModel):
    pull_request_id: int = pydantic.Field(gt=0)


Response = PullRequestChanges


@validate_arguments(Arguments)
async def tool_get_pull_request_changes(
    collector: ChangeCollector, arguments: Arguments
) -> Response:
    """Unified diffs of the files changed by the latest pull request iteration

    Change entries that carry neither a path nor an original path are left
    out of `files` (a warning is logged for each), so `files` can be shorter
    than the iteration's change list.
    """

    return await collector.collect(arguments.pull_request_id)
