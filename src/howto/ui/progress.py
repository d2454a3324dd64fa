"""Progress display for a streaming query.

Hides how progress is shown while an answer streams in: a spinner
that counts the fragments received so far.
"""

from rich.console import Console

from ..llm.channel import FragmentChannel

SPINNER = "dots"
CONNECTING_MSG = "Connecting..."


class SpinnerObserver:
    """Consumes the fragment channel and animates a Rich spinner.

    Runs as its own task next to the engine task and returns once the
    producer closes the channel. The spinner is cleared when it returns.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console()
        self.fragments_seen = 0

    async def __call__(self, channel: FragmentChannel) -> int:
        """Watch the channel until it closes.

        Returns:
            Number of fragments received
        """
        self.fragments_seen = 0
        with self.console.status(CONNECTING_MSG, spinner=SPINNER, spinner_style="green") as status:
            async for _fragment in channel:
                self.fragments_seen += 1
                status.update(f"Working ({self.fragments_seen} tokens)...")
        return self.fragments_seen
