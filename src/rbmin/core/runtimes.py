"""Discovery of the Ruby interpreters packages are installed for"""

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import structlog

from .exceptions import RuntimeNotFoundError

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class InterpreterTarget:
    """An interpreter id and the executable it resolved to"""

    id: str
    path: Path


class RuntimeRegistry:
    """Maps interpreter ids to executables found on the search path"""

    def __init__(
        self,
        candidates: Mapping[str, List[str]],
        search_path: Optional[str] = None,
    ):
        """
        Initialize RuntimeRegistry

        Args:
            candidates: Interpreter id -> command names, tried in order
            search_path: PATH-style string; defaults to ``$PATH``
        """
        self.candidates = dict(candidates)
        self.search_path = (
            os.environ.get("PATH", os.defpath)
            if search_path is None
            else search_path
        )

    def resolve(self, interpreter: str) -> Optional[Path]:
        """First executable found for an interpreter id"""
        for command in self.candidates.get(interpreter, []):
            found = shutil.which(command, path=self.search_path)
            if found:
                return Path(found)
        return None

    def discover(self) -> Dict[str, InterpreterTarget]:
        """Every configured interpreter that resolves, in configured order"""
        targets = {}
        for interpreter in self.candidates:
            path = self.resolve(interpreter)
            if path is not None:
                targets[interpreter] = InterpreterTarget(interpreter, path)
        log.debug("runtimes.discovered", interpreters=list(targets))
        return targets

    def select(
        self, targets: Mapping[str, InterpreterTarget], requested: List[str]
    ) -> List[InterpreterTarget]:
        """Targets for the requested ids, or all discovered ones

        Raises:
            RuntimeNotFoundError: If a requested id was not discovered
        """
        if not requested:
            return list(targets.values())
        missing = [name for name in requested if name not in targets]
        if missing:
            raise RuntimeNotFoundError(
                f"Interpreter not found: {', '.join(missing)}",
                details=f"available: {', '.join(targets) or '(none)'}",
            )
        return [targets[name] for name in requested]
