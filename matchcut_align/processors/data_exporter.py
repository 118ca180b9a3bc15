"""Streaming JSON exporter for per-frame alignment data."""

from typing import Dict, Any, Optional, TextIO, Union
import json
from pathlib import Path

from ..core.types import AlignmentResult

# Room left after the frame_count placeholder so the final count fits in place
_COUNT_WIDTH = 20


class DataExporter:
    """
    Writes ``{metadata..., "frame_count": N, "data": [...]}`` one item at a time.

    Items are written as they arrive so long sequences never sit in memory;
    the frame count is patched into a fixed-width slot when the file closes.
    """

    def __init__(self, output_path: Union[str, Path], metadata: Optional[Dict[str, Any]] = None) -> None:
        """Initialize data exporter.

        Args:
            output_path: Output file path
            metadata: Optional metadata to include
        """
        self.output_path: Path = Path(output_path)
        self.file: Optional[TextIO] = None
        self.metadata: Dict[str, Any] = metadata or {}
        self.first_item: bool = True
        self.frame_count: int = 0
        self.frame_count_position: int = 0

    def __enter__(self) -> 'DataExporter':
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.file = open(self.output_path, 'w', encoding='utf-8')
        self.file.write('{\n')

        for key, value in self.metadata.items():
            if key not in ('frame_count', 'data'):
                self.file.write(f'  {json.dumps(key)}: {json.dumps(value)},\n')

        self.file.write('  "frame_count": ')
        self.frame_count_position = self.file.tell()
        self.file.write('null'.ljust(_COUNT_WIDTH) + ',\n')

        self.file.write('  "data": [\n')
        return self

    def __exit__(self, exc_type: Optional[type], exc_val: Optional[Exception], exc_tb: Optional[Any]) -> None:
        if self.file:
            self.file.write('\n  ]\n}\n')
            self._update_frame_count()
            self.file.close()
            self.file = None

    def write_item(self, item: Any) -> None:
        """Write a single JSON-serializable item (None for a failed frame)."""
        if self.file is None:
            raise RuntimeError("DataExporter used outside of a 'with' block")
        if not self.first_item:
            self.file.write(',\n')
        else:
            self.first_item = False

        item_json: str = json.dumps(item, indent=2)
        indented: str = '\n'.join('    ' + line for line in item_json.split('\n'))
        self.file.write(indented)

        self.frame_count += 1
        self.file.flush()

    def write_result(self, result: Optional[AlignmentResult]) -> None:
        """Write an alignment result, or null for a frame that failed."""
        self.write_item(result.to_dict() if result is not None else None)

    def _update_frame_count(self) -> None:
        end: int = self.file.tell()
        self.file.seek(self.frame_count_position)
        self.file.write(str(self.frame_count).ljust(_COUNT_WIDTH))
        self.file.seek(end)
