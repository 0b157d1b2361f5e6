"""Message capture for Textual in-process tests.

Callable class passed as message_hook to run_test().
"""

from textual.message import Message


class MessageCapture:
    """Captures Textual messages during run_test().

    Usage:
        capture = MessageCapture()
        async with run_app(client, message_hook=capture) as (pilot, app):
            ...
            assert capture.query_results()[0].error is None
    """

    def __init__(self):
        self._messages: list[Message] = []

    def __call__(self, message: Message) -> None:
        self._messages.append(message)

    def of_type(self, type_name: str) -> list[Message]:
        """Filter by class name (string match avoids import coupling)."""
        return [m for m in self._messages if type(m).__name__ == type_name]

    def query_results(self) -> list:
        """QueryResult payloads of every QueryFinished message, in arrival order."""
        return [m.result for m in self.of_type("QueryFinished")]
