"""Import engine for bulk question imports."""

from qbank.services.importer.options import synthesize_options
from qbank.services.importer.parser import ImportParser, RawRecord
from qbank.services.importer.preview import ImportPreview, PreviewState
from qbank.services.importer.transformer import QuestionTransformer

__all__ = [
    "ImportParser",
    "RawRecord",
    "QuestionTransformer",
    "synthesize_options",
    "ImportPreview",
    "PreviewState",
]
