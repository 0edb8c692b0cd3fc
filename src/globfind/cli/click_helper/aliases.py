from typing import Any, Optional, Sequence

import click


class AliasedCommand(click.Command):
    def __init__(self, *args: Any, aliases: Sequence[str] = (), **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.aliases = aliases


class AliasedGroup(click.Group):
    """A group that also resolves commands by the aliases of an `AliasedCommand`."""

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        rv = super().get_command(ctx, cmd_name)
        if rv is not None:
            return rv

        return next(
            (cmd for cmd in self.commands.values() if isinstance(cmd, AliasedCommand) and cmd_name in cmd.aliases),
            None,
        )

    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        super().format_commands(ctx, formatter)

        rows = []
        for name in self.list_commands(ctx):
            cmd = self.commands.get(name)
            if isinstance(cmd, AliasedCommand) and cmd.aliases and not cmd.hidden:
                rows.append((", ".join(cmd.aliases), f"Alias for `{cmd.name}`."))

        if rows:
            with formatter.section("Aliases"):
                formatter.write_dl(rows)
