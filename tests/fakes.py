"""Shared test doubles and identities."""
from docengine.documents.sources import SourceDocument

USER = "user-1"
OTHER_USER = "user-2"


class FakeCompletion:
    """CompletionStreamPort double: yields fixed pieces, optionally fails or runs a hook per piece."""

    def __init__(self, pieces: list[str], fail_with: Exception | None = None, on_piece=None) -> None:
        self.pieces = pieces
        self.fail_with = fail_with
        self.on_piece = on_piece
        self.calls: list[tuple[str, str, int | None]] = []

    async def stream_completion(self, system_instruction: str, prompt: str, max_tokens: int | None = None):
        self.calls.append((system_instruction, prompt, max_tokens))
        for i, piece in enumerate(self.pieces):
            if self.on_piece is not None:
                self.on_piece(i)
            yield piece
        if self.fail_with is not None:
            raise self.fail_with


class StaticResolver:
    """SourceResolverPort double over an in-memory id -> (title, content) map."""

    def __init__(self, docs: dict[str, tuple[str, str]]) -> None:
        self.docs = docs

    def resolve(self, ids: list[str], workspace_id: str) -> list[SourceDocument]:
        return [SourceDocument(id=i, title=self.docs[i][0], content=self.docs[i][1]) for i in ids if i in self.docs]


class RecordingInvalidator:
    def __init__(self, fail: bool = False) -> None:
        self.calls: list[tuple[str, str | None]] = []
        self.fail = fail

    def invalidate(self, workspace_id: str, owner_id: str | None = None) -> None:
        self.calls.append((workspace_id, owner_id))
        if self.fail:
            raise RuntimeError("cache down")
