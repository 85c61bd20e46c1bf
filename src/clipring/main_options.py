"""Click option helpers for the process mode flags."""
import click


def _check_exclusive_mode(name: str, other_modes: list[str], ctx: click.Context, opts: dict) -> None:
    """Raise UsageError if another mode flag is present.

    Args:
        name: Name of the current mode option.
        other_modes: Names of the mode options that cannot be combined.
        ctx: The click context.
        opts: Dictionary of parsed options.

    Raises:
        click.UsageError: If the mode is combined with another one.
    """
    for other in other_modes:
        if opts.get(other):
            msg = f"Options --{name} and --{other} are mutually exclusive"
            raise click.UsageError(msg, ctx=ctx)


class ModeOption(click.Option):
    """Flag selecting a process mode, exclusive with other modes."""

    def __init__(self, *args, **kwargs):
        """Initialize with exclusive_with listing the other mode flags."""
        self.exclusive_with = kwargs.pop("exclusive_with", [])
        super().__init__(*args, **kwargs)

    def handle_parse_result(self, ctx, opts, args):
        """Reject combining this mode with other modes."""
        if opts.get(self.name):
            _check_exclusive_mode(self.name, self.exclusive_with, ctx, opts)
        return super().handle_parse_result(ctx, opts, args)
