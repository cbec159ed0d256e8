import inspect
import fastapi
import functools
import pydantic
import typing

RT = typing.TypeVar("RT")  # return type


def validate_arguments(
    model: type[pydantic.BaseModel],
) -> typing.Callable[[typing.Callable[..., RT]], typing.Callable[..., RT]]:
    """Decorator for the validation of tool arguments

    Args:
        model (type[pydantic.BaseModel]): model the raw arguments are validated into

    Note:
        For this decorator to work correctly, arguments MUST be passed as kwarg
    """

    def decorator(func: typing.Callable[..., RT]) -> typing.Callable[..., RT]:
        assert inspect.iscoroutinefunction(func), "Tools must be coroutines"

        @functools.wraps(func)
        async def wrapper(*args: typing.Any, **kwargs: typing.Any) -> typing.Any:
            try:
                validated_arguments = model.model_validate(kwargs["arguments"])
            except pydantic.ValidationError as e:
                raise fastapi.HTTPException(
                    status_code=400,
                    detail=f"Error while validating {func.__name__}'s arguments : {str(e)}",
                )
            kwargs["arguments"] = validated_arguments
            return await func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator
