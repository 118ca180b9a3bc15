"""Utilities for detecting and handling input types."""

from pathlib import Path
from typing import List, Union

from ..core.input_type import InputType

IMAGE_SUFFIXES = ('.jpg', '.jpeg', '.png', '.bmp', '.webp', '.tif', '.tiff')


def detect_input_type(input_path: Union[str, Path]) -> InputType:
    """
    Detect the type of input.

    Args:
        input_path: Folder of photos, a single photo, or a landmarks JSON file

    Returns:
        Input type enum value
    """
    input_path_obj: Path = Path(input_path)

    if input_path_obj.is_dir() or input_path_obj.suffix.lower() in IMAGE_SUFFIXES:
        return InputType.IMAGES

    if input_path_obj.suffix.lower() == '.json':
        return InputType.LANDMARKS

    raise ValueError(f"Unsupported input: {input_path}")


def list_images(input_path: Union[str, Path]) -> List[Path]:
    """
    List photos in sequence order.

    A folder is read in file name order; a single image path is returned as-is.
    """
    input_path_obj: Path = Path(input_path)
    if input_path_obj.is_file():
        return [input_path_obj]
    return sorted(p for p in input_path_obj.iterdir()
                  if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES)
