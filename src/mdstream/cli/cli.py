"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdstream.cli.commands import render_cmd, repair_cmd, stream_cmd


app = typer.Typer(name="mdstream", no_args_is_help=True, help="Incremental block parser for streaming markdown")

app.command(name="render")(render_cmd)
app.command(name="stream")(stream_cmd)
app.command(name="repair")(repair_cmd)
