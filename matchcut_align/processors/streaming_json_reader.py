"""Streaming JSON reader using ijson for token-based parsing."""

from typing import Iterator, Dict, Any, Optional, Union
from decimal import Decimal
import ijson
from pathlib import Path


class StreamingJSONReader:
    """
    Reads the ``{metadata..., "data": [...]}`` container without loading it whole.
    """

    def __init__(self, input_path: Union[str, Path], items_key: str = 'data') -> None:
        """
        Initialize streaming JSON reader.

        Args:
            input_path: Input file path
            items_key: Top-level key of the item array
        """
        self.input_path: Path = Path(input_path)
        self.items_key: str = items_key
        self.file: Optional[Any] = None

    def __enter__(self) -> 'StreamingJSONReader':
        self.file = open(self.input_path, 'rb')  # ijson parses bytes
        return self

    def __exit__(self, exc_type: Optional[type], exc_val: Optional[Exception], exc_tb: Optional[Any]) -> None:
        if self.file:
            self.file.close()
            self.file = None

    def read_items(self) -> Iterator[Any]:
        """Yield the entries of the item array one at a time."""
        if self.file is None:
            raise RuntimeError("StreamingJSONReader used outside of a 'with' block")
        self.file.seek(0)
        yield from ijson.items(self.file, f'{self.items_key}.item', use_float=True)

    def get_metadata(self) -> Dict[str, Any]:
        """
        Collect scalar top-level entries that precede the item array.

        Nested metadata objects are skipped; integral numbers stay ints.
        """
        if self.file is None:
            raise RuntimeError("StreamingJSONReader used outside of a 'with' block")
        self.file.seek(0)

        metadata: Dict[str, Any] = {}
        for prefix, event, value in ijson.parse(self.file):
            if prefix == self.items_key and event == 'start_array':
                break
            if '.' in prefix or not prefix:
                continue
            if event == 'number':
                if isinstance(value, Decimal):
                    value = int(value) if value == value.to_integral_value() else float(value)
                metadata[prefix] = value
            elif event in ('string', 'boolean', 'null'):
                metadata[prefix] = value
        return metadata
