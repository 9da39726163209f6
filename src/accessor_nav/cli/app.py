import logging
from typing import Annotated

import typer

from accessor_nav.cli.scan import proxy, scan
from accessor_nav.cli.navigate import complete, references, resolve
from accessor_nav.cli.serve import serve_app

app = typer.Typer(
    name="accessor-nav",
    help="Accessor Nav CLI: jump between PHP accessors, proxies and property declarations.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log every resolution step.")] = False,
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


app.command("resolve")(resolve)
app.command("references")(references)
app.command("complete")(complete)
app.command("scan")(scan)
app.command("proxy")(proxy)
app.add_typer(serve_app, name="serve")


def main() -> None:
    app()
