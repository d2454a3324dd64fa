"""Default values for the client configuration."""

DEFAULT_PRIMING_MSG = """
This is a chat where experts give tested, modern answers to Debian Linux,
Sysops, Proxmox and networking questions. Answers are very compact, well-indented Markdown.
They value ultra short answer and don't waste reader's time with greetings and long-winded
explanations - but will warn you when the answer might be dangerous, and explain if it's
potentially hard to understand even for a pro.
"""

DEFAULT_SUBJECT_MSG = "Topic '{}'. Help me with the following task:"

DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_TEMPERATURE = 0.4
DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_CONFIG_PATH = "~/.howto.ini"


def trim_lines(text: str) -> str:
    """Strip leading and trailing whitespace from every line."""
    return "\n".join(line.strip() for line in text.splitlines()).strip()


def ini_format_multiline_str(text: str) -> str:
    """Format a multi-line value as an INI continuation block.

    Continuation lines are indented so the INI parser joins them back
    into a single value.
    """
    return "\n".join(f"    {line}" for line in text.strip().splitlines()).lstrip()
