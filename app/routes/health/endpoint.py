import pydantic
import typing


class Response(pydantic.BaseModel):
    status: typing.Literal["healthy"]
    project: str
    repository: str


def endpoint_health(project: str, repository: str) -> Response:
    return Response(status="healthy", project=project, repository=repository)
