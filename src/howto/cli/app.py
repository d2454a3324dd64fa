"""Main CLI application using Typer."""
import asyncio
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from .. import __version__
from ..chat import ChatSession
from ..config import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_PRIMING_MSG,
    DEFAULT_SUBJECT_MSG,
    ConfigError,
    ini_format_multiline_str,
    load_config,
)
from ..ui import setup_logging

# Load environment variables
load_dotenv()

EXAMPLE_CONFIG = f"""\
[default]
openai_token = sk-1234567890123456789012345678901234567890
; --- These are optional: ---
chat = true                     ; If true, wait for a new question after each answer
model = gpt-3.5-turbo
temperature = 0.4
cost_per_token = 0.000002       ; No default, won't show query cost if missing
base_url = https://api.openai.com/v1
token_counting = tiktoken       ; or "fragments" to count streamed pieces
subject_msg = "{ini_format_multiline_str(DEFAULT_SUBJECT_MSG)}"
priming_msg = {ini_format_multiline_str(DEFAULT_PRIMING_MSG)}
"""

EPILOG = f"""\
You need to configure your OpenAI API key in {DEFAULT_CONFIG_PATH}.
The example configuration file below primes the model to be a Linux
sysops assistant, but you can change it to anything.

\b
{EXAMPLE_CONFIG}"""

# Create Typer app
app = typer.Typer(
    name="howto",
    help="Command-line chat assistant, powered by OpenAI language models",
    add_completion=False,
    rich_markup_mode=None,
)

# Console for rich output
console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(__version__)
        raise typer.Exit()


@app.command(epilog=EPILOG)
def ask(
    subject_or_question: str = typer.Argument(
        ...,
        metavar="[SUBJECT] QUESTION",
        help="Question to ask, optionally preceded by a subject"
    ),
    question: str | None = typer.Argument(
        None,
        hidden=True,
        help="Question, when a subject is given"
    ),
    config: Path = typer.Option(
        Path(DEFAULT_CONFIG_PATH),
        "--config",
        "-c",
        help="Config file"
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        "-d",
        help="Enable debug logging"
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show version"
    )
):
    """Ask a question, then keep chatting while chat mode is on."""
    setup_logging(debug)

    try:
        conf = load_config(config)
    except ConfigError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    if question is None:
        subject, first_question = None, subject_or_question
    else:
        subject, first_question = subject_or_question, question

    session = ChatSession(conf, console=console)
    try:
        asyncio.run(session.run(session.format_first_question(first_question, subject)))
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
