import pydantic

from app.devops.client import IDevOpsClient, UntypedRecord
from app.pipelines.run import get_pipeline_run
from app.routes.api.v1.tools.validation import validate_arguments


class Arguments(pydantic.BaseModel):
    run_id: int = pydantic.Field(gt=0)
    pipeline_id: int | None = pydantic.Field(default=None, gt=0)


class Response(pydantic.BaseModel):
    run: UntypedRecord


@validate_arguments(Arguments)
async def tool_get_pipeline_run(
    client: IDevOpsClient, arguments: Arguments
) -> Response:
    run = await get_pipeline_run(client, arguments.run_id, arguments.pipeline_id)
    return Response(run=run)
