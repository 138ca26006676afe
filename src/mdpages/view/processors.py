"""Registry of named post-processors applied to rendered pages.

A post-processor is a callable ``(data, raw) -> str``. Processors are either
registered in code with :meth:`ProcessorRegistry.register` or loaded once at
start-up from a directory of ``*.py`` files that each define ``process``.
"""

from __future__ import annotations

import importlib.util
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Mapping

LOGGER = logging.getLogger(__name__)

PostProcessor = Callable[[Mapping[str, Any], str], str]

ENTRY_POINT = "process"


class ProcessorNotFoundError(LookupError):
    """Raised when a page names a post-processor that was never registered."""


def _normalize_name(name: str) -> str:
    return name[:-3] if name.endswith(".py") else name


class ProcessorRegistry:
    def __init__(self) -> None:
        self._processors: Dict[str, PostProcessor] = {}

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and _normalize_name(name) in self._processors

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._processors))

    def __len__(self) -> int:
        return len(self._processors)

    def add(self, name: str, processor: PostProcessor) -> None:
        if not callable(processor):
            raise TypeError(f"post-processor {name!r} is not callable")
        self._processors[_normalize_name(name)] = processor

    def register(self, name: str) -> Callable[[PostProcessor], PostProcessor]:
        """Decorator form of :meth:`add`."""

        def decorator(processor: PostProcessor) -> PostProcessor:
            self.add(name, processor)
            return processor

        return decorator

    def get(self, name: str) -> PostProcessor:
        try:
            return self._processors[_normalize_name(name)]
        except KeyError:
            raise ProcessorNotFoundError(f"Unknown post-processor: {name}") from None

    def load_directory(self, directory: Path) -> int:
        """Import every ``*.py`` file in ``directory`` and register its ``process``.

        Import errors and files without a callable ``process`` propagate, so a
        broken processor directory fails at start-up rather than on a request.
        """
        directory = Path(directory)
        loaded = 0
        for path in sorted(directory.glob("*.py")):
            if path.name.startswith("_"):
                continue
            self.add(path.stem, _load_entry_point(path))
            loaded += 1
        LOGGER.info("Registered %d post-processors from %s", loaded, directory)
        return loaded


def _load_entry_point(path: Path) -> PostProcessor:
    spec = importlib.util.spec_from_file_location(f"mdpages_processor_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load post-processor from {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    processor = getattr(module, ENTRY_POINT, None)
    if not callable(processor):
        raise TypeError(f"{path} does not define a callable {ENTRY_POINT}(data, raw)")
    return processor
