from pathlib import Path
from typing import Protocol


class DocumentSource(Protocol):
    def get_text(self, uri: str) -> str | None: ...

    def open_uris(self) -> list[str]: ...

    async def workspace_folders(self) -> list[Path]: ...
