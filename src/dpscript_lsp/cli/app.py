import typer

from dpscript_lsp.cli.classify import classify_line
from dpscript_lsp.cli.compile import compile_command, watch_command
from dpscript_lsp.cli.serve import serve

app = typer.Typer(
    name="dpscript-lsp",
    help="DPScript language server and compiler tooling.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("serve")(serve)
app.command("compile")(compile_command)
app.command("watch")(watch_command)
app.command("classify")(classify_line)


def main() -> None:
    app()
