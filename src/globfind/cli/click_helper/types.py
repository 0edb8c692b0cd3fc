from enum import Enum
from typing import Any, Callable, Generic, Optional, Type, TypeVar, Union

import click

T = TypeVar("T", bound=Enum)

FC = Union[Callable[..., Any], click.Command]


class EnumChoice(click.Choice, Generic[T]):
    """A click.Choice that accepts and returns Enum values."""

    def __init__(self, choices: Type[T], case_sensitive: bool = True) -> None:
        super().__init__([str(c.value) for c in choices], case_sensitive)
        self.enum_type = choices

    def convert(self, value: Any, param: Optional[click.Parameter], ctx: Optional[click.Context]) -> T:
        if isinstance(value, self.enum_type):
            return value
        return self.enum_type(super().convert(value, param, ctx))


def add_options(*options: FC) -> Callable[[FC], FC]:
    def _add_options(func: FC) -> FC:
        for option in reversed(options):
            func = option(func)
        return func

    return _add_options
