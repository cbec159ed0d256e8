import pydantic

from app.devops.client import PushResult
from app.repositories.commit import CommitConstructor, PatchChange
from app.routes.api.v1.tools.validation import validate_arguments


class Arguments(pydantic.BaseModel):
    branch_name: str = pydantic.Field(min_length=1)
    commit_message: str = pydantic.Field(min_length=1)
    changes: list[PatchChange] = pydantic.Field(min_length=1)
    base_commit_id: str | None = None


class Response(pydantic.BaseModel):
    branch_name: str
    push: PushResult


@validate_arguments(Arguments)
async def tool_create_commit(
    constructor: CommitConstructor, arguments: Arguments
) -> Response:
    push = await constructor.commit(
        branch_name=arguments.branch_name,
        message=arguments.commit_message,
        changes=arguments.changes,
        base_commit_id=arguments.base_commit_id,
    )
    return Response(branch_name=arguments.branch_name, push=push)
