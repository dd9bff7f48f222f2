"""Click option class for clapboard's mode flags.

--capture and --store each pick a mode; giving both is a usage error.
"""
import click


def _flag(name: str) -> str:
    """Return the command-line spelling of an option name."""
    return "--" + name.replace("_", "-")


class ModeOption(click.Option):
    """Option selecting a mode that excludes the modes in `conflicts`."""

    def __init__(self, *args, **kwargs):
        """Initialize with conflicts naming the options of other modes."""
        self.conflicts = tuple(kwargs.pop("conflicts", ()))
        super().__init__(*args, **kwargs)

    def handle_parse_result(self, ctx, opts, args):
        """Reject the option if another mode was selected as well.

        Raises:
            click.UsageError: If a conflicting option is present.
        """
        if self.name in opts:
            given = [other for other in self.conflicts if other in opts]
            if given:
                others = ", ".join(_flag(other) for other in given)
                raise click.UsageError(
                    f"Option {_flag(self.name)} cannot be combined with {others}",
                    ctx=ctx,
                )
        return super().handle_parse_result(ctx, opts, args)
