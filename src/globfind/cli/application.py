import json
import sys
from dataclasses import dataclass
from enum import Enum, unique
from typing import IO, Any, AnyStr, Callable, Dict, List, Optional, Sequence, Union

import click
import tomli_w

__all__ = [
    "Application",
    "ColoredOutput",
    "CommonConfig",
    "OutputFormat",
    "pass_application",
]


@unique
class ColoredOutput(str, Enum):
    AUTO = "auto"
    YES = "yes"
    NO = "no"


@unique
class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"
    JSON_INDENT = "json-indent"
    TOML = "toml"

    def __str__(self) -> str:
        return self.value


@dataclass
class CommonConfig:
    verbose: bool = False
    colored_output: ColoredOutput = ColoredOutput.AUTO
    output_format: Optional[OutputFormat] = None


class Application:
    def __init__(self) -> None:
        self.config = CommonConfig()

    @property
    def colored(self) -> Optional[bool]:
        # None lets click strip styles if the stream is not a terminal
        if self.config.colored_output == ColoredOutput.AUTO:
            return None
        return self.config.colored_output == ColoredOutput.YES

    def verbose(
        self,
        message: Union[str, Callable[[], Any], None],
        file: Optional[IO[AnyStr]] = None,
        nl: bool = True,
        err: bool = True,
    ) -> None:
        if self.config.verbose:
            click.secho(
                message() if callable(message) else message,
                file=file,
                nl=nl,
                err=err,
                color=self.colored,
                fg="bright_black",
            )

    def warning(self, message: Union[str, Callable[[], Any], None], err: bool = True) -> None:
        click.secho(
            f"[ {click.style('WARN', fg='yellow')} ] {message() if callable(message) else message}",
            err=err,
            color=self.colored,
            fg="bright_yellow",
        )

    def error(self, message: Union[str, Callable[[], Any], None], err: bool = True) -> None:
        click.secho(
            f"[ {click.style('ERROR', fg='red')} ] {message() if callable(message) else message}",
            err=err,
            color=self.colored,
        )

    def echo(
        self,
        message: Union[str, Callable[[], Any], None],
        file: Optional[IO[AnyStr]] = None,
        nl: bool = True,
        err: bool = False,
    ) -> None:
        click.echo(message() if callable(message) else message, file=file, nl=nl, color=self.colored, err=err)

    def print_items(self, name: str, items: Sequence[str]) -> None:
        """Prints a list of strings, one per line or as a `{name: items}` document."""
        format = self.config.output_format or OutputFormat.TEXT

        if format == OutputFormat.TEXT:
            for item in items:
                self.echo(item)
            return

        data: Dict[str, List[str]] = {name: list(items)}

        if format == OutputFormat.TOML:
            text = tomli_w.dumps(data)
        else:
            text = json.dumps(data, indent=2 if format == OutputFormat.JSON_INDENT else None)

        if self.colored:
            try:
                from rich.console import Console
                from rich.syntax import Syntax

                lexer = "toml" if format == OutputFormat.TOML else "json"
                Console(soft_wrap=True).print(Syntax(text, lexer, background_color="default"))
                return
            except ImportError:
                self.warning('Package "rich" is required to use colored output.')

        self.echo(text)

    def exit(self, code: int = 0) -> None:
        self.verbose(f"Exit with code {code}")
        sys.exit(code)


pass_application = click.make_pass_decorator(Application, ensure=True)
