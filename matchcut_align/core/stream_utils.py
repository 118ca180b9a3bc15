"""Streaming utilities for unified batch/stream processing."""

from typing import Any, Iterable, Iterator, Callable, List, Optional, TypeVar, Union

T = TypeVar('T')


def is_iterator(obj: Any) -> bool:
    """
    Check if object is an iterator (excluding string, bytes, dict).
    
    Args:
        obj: Object to check
        
    Returns:
        True if object is an iterator that should be treated as stream
    """
    # Exclude common non-stream iterables
    if isinstance(obj, (str, bytes, dict, list, tuple, set)):
        return False
    
    return hasattr(obj, '__next__')


def ensure_iterator(data: Union[Iterable[T], Iterator[T]]) -> Iterator[T]:
    """Wrap lists and other iterables into an iterator."""
    return data if is_iterator(data) else iter(data)


def apply_to_stream(stream: Iterator[T], 
                    func: Callable[[T], Any],
                    preserve_none: bool = True) -> Iterator[Any]:
    """
    Apply function to each item in stream.
    
    Args:
        stream: Input stream
        func: Function to apply to each item
        preserve_none: If True, None values pass through unchanged
        
    Yields:
        Results of applying func to each stream item
    """
    for item in stream:
        if item is None and preserve_none:
            yield None
        else:
            yield func(item)


def collect_stream(stream: Iterator[T], buffer_size: Optional[int] = 1) -> Union[Iterator[T], List[T]]:
    """
    Return a stream as-is or materialize it.
    
    Args:
        stream: Input stream
        buffer_size: None collects everything into a list; any other value
                     keeps the stream lazy
    """
    if buffer_size is None:
        return list(stream)
    return stream
