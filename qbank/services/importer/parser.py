"""File parser for the import engine (CSV and JSON)."""

import csv
import io
import json
from typing import Any

from qbank.core.config import settings
from qbank.core.errors import ParseError
from qbank.core.logging import get_logger
from qbank.schemas.question import FileFormat

logger = get_logger(__name__)

# Loosely-typed record decoded straight from a file. Only the transformer reads it.
RawRecord = dict[str, Any]


class ImportParser:
    """Decode uploaded files into raw records. No question semantics here."""

    def __init__(self, encoding: str | None = None, delimiter: str | None = None):
        """
        Initialize parser.

        Args:
            encoding: Text encoding of uploaded bytes (defaults to settings)
            delimiter: CSV delimiter (defaults to settings)
        """
        self.encoding = encoding or settings.IMPORT_ENCODING
        self.delimiter = delimiter or settings.IMPORT_CSV_DELIMITER

    def parse(self, file_content: bytes | str, file_format: FileFormat | str) -> list[RawRecord]:
        """
        Parse file content in the declared format.

        Args:
            file_content: Raw file bytes or already-decoded text
            file_format: "csv" or "json"

        Returns:
            Ordered list of raw records

        Raises:
            ParseError: If the file cannot be decoded in its declared format
        """
        try:
            fmt = FileFormat.normalize(file_format)
        except ValueError:
            raise ParseError(f"Unsupported import format '{file_format}'")

        text_content = self._decode(file_content)
        if fmt == FileFormat.JSON:
            records = self._parse_json(text_content)
        else:
            records = self._parse_csv(text_content)

        logger.info("Import file parsed", extra={"format": fmt.value, "records": len(records)})
        return records

    def _decode(self, file_content: bytes | str) -> str:
        if isinstance(file_content, str):
            text_content = file_content
        else:
            encoding = self.encoding
            # Spreadsheet exports often carry a BOM
            if encoding.lower().replace("-", "") == "utf8":
                encoding = "utf-8-sig"
            try:
                text_content = file_content.decode(encoding)
            except UnicodeDecodeError as e:
                raise ParseError(f"Failed to decode file with encoding {self.encoding}: {e}")
        return text_content.lstrip("\ufeff")

    def _parse_json(self, text_content: str) -> list[RawRecord]:
        try:
            data = json.loads(text_content)
        except json.JSONDecodeError as e:
            raise ParseError(str(e))
        except RecursionError:
            raise ParseError("JSON nesting too deep")

        if not isinstance(data, list):
            raise ParseError("expected array")
        return data

    def _parse_csv(self, text_content: str) -> list[RawRecord]:
        records: list[RawRecord] = []
        try:
            reader = csv.DictReader(io.StringIO(text_content), delimiter=self.delimiter)
            for row in reader:
                # Filter out None keys (from extra delimiters)
                cleaned_row = {k.strip(): v for k, v in row.items() if k is not None}
                if all(v is None or not v.strip() for v in cleaned_row.values()):
                    continue
                records.append(cleaned_row)
        except csv.Error as e:
            raise ParseError(f"CSV parsing error: {e}")
        return records
