"""Assemble grounding context for a chat turn from stored documents."""

from typing import Iterable

from study_assistant.schemas.library import Folder

DEFAULT_MAX_CHARS = 8000

# Separator inserted between pieces; counted against the budget per piece
PIECE_SEPARATOR = "\n\n"


def document_header(folder_name: str, document_name: str) -> str:
    return f"【{folder_name} / {document_name}】\n"


def collect_file_context(folders: Iterable[Folder], max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Concatenate document text, first-fit in folder then document order.

    Documents that did not parse or have no content are skipped. Once the
    budget is used up collection stops, even if a later document would fit.
    The result is at most ``max_chars`` plus one header long.
    """
    pieces = []
    used = 0

    for folder in folders:
        for document in folder.documents:
            if not document.is_text:
                continue

            header = document_header(folder.name, document.file_name)
            remaining = max_chars - used - len(header)
            if remaining <= 0:
                return PIECE_SEPARATOR.join(pieces)

            snippet = document.content[:remaining]
            pieces.append(header + snippet)
            used += len(header) + len(snippet) + len(PIECE_SEPARATOR)

    return PIECE_SEPARATOR.join(pieces)
