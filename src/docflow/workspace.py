"""Workspace variable environment.

A workspace is a root directory holding documents and, optionally, a
variables file named by a suffix convention (`*.vars.yaml` by default).
The top-level keys of that file form the variable environment used to
interpolate every document of the workspace.

The environment is replaced wholesale: a successful reload swaps in a
new read-only mapping, a failed reload swaps in an empty one and emits
a `WorkspaceWarning`. Readers holding the previous mapping keep a
consistent view.
"""

from logging import getLogger
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING
from warnings import warn

from docflow.core import DocumentPipeline, parse_source
from docflow.errors import DocumentError, WorkspaceWarning
from docflow.settings import PipelineSettings
from docflow.values import MAPPINGS

if TYPE_CHECKING:
    from os import PathLike

if TYPE_CHECKING:
    from docflow.core import PipelineResult
    from docflow.values import Environment

logger = getLogger(__name__)

EMPTY_ENVIRONMENT: 'Environment' = MappingProxyType({})


class Workspace:
    """Workspace root with its variable environment.

    Attributes:
        root: Absolute workspace root directory.
        settings: Pipeline settings.
        variables_file: Currently honored variables file, if any.
    """

    def __init__(self, root: 'str | PathLike[str]',
                 settings: PipelineSettings | None = None, *,
                 autoload: bool = True) -> None:
        """Initialize the workspace.

        Args:
            root: Workspace root directory.
            settings: Pipeline settings. Defaults are read from the
                process environment.
            autoload: Whether to load the variables file right away.
        """
        self.root = Path(root).resolve()
        self.settings = settings or PipelineSettings()
        self.variables_file: Path | None = None

        self._variables: Environment = EMPTY_ENVIRONMENT

        if autoload:
            self.load_variables()

    @property
    def variables(self) -> 'Environment':
        """Current read-only variable environment."""
        return self._variables

    def discover_variables_file(self) -> Path | None:
        """Find the variables file at the workspace root.

        At most one file is honored: the first matching name in sorted
        order. Subdirectories are not searched.

        Returns:
            Path of the variables file, or `None` if there is none.
        """
        if not self.root.is_dir():
            return None

        candidates = sorted(
            item for item in self.root.iterdir()
            if item.name.endswith(self.settings.variables_suffix) and item.is_file()
        )

        return candidates[0] if candidates else None

    def is_variables_file(self, path: 'str | PathLike[str]') -> bool:
        """Check if a path names a variables file of this workspace.

        Args:
            path: Any file path, existing or not.

        Returns:
            True if the file sits at the root and has the variables suffix.
        """
        path = Path(path)

        return (
            path.name.endswith(self.settings.variables_suffix)
            and path.parent.resolve() == self.root
        )

    def load_variables(self) -> 'Environment':
        """Discover and load the variables file.

        Absence of a variables file gives an empty environment and is
        not an error. An unreadable root directory gives an empty
        environment and a warning.

        Returns:
            The new variable environment.
        """
        try:
            self.variables_file = self.discover_variables_file()

        except OSError as error:
            warn(
                f'Failed to list workspace {str(self.root)!r}: {error}',
                category=WorkspaceWarning,
                stacklevel=2,
            )
            self.variables_file = None
            self._variables = EMPTY_ENVIRONMENT
            return self._variables

        if self.variables_file is None:
            logger.debug('No variables file in %s', self.root)
            self._variables = EMPTY_ENVIRONMENT
            return self._variables

        return self.reload(self.variables_file)

    def reload(self, path: 'str | PathLike[str]') -> 'Environment':
        """Replace the environment with the content of a variables file.

        Args:
            path: Variables file to load.

        Returns:
            The new variable environment; empty if loading failed.
        """
        path = Path(path)

        try:
            variables = self._read_variables(path)

        except DocumentError as error:
            warn(
                f'Failed to load variables file {str(path)!r}: {error.message}',
                category=WorkspaceWarning,
                stacklevel=2,
            )
            self._variables = EMPTY_ENVIRONMENT
            return self._variables

        logger.debug('Loaded %d variables from %s', len(variables), path)
        self._variables = MappingProxyType(variables)

        return self._variables

    def notify_change(self, path: 'str | PathLike[str]') -> bool:
        """Handle a file change notification.

        Any created, changed or deleted variables file at the root
        triggers a full rediscovery, so the honored file is always the
        first one in sorted order.

        Args:
            path: Path of the changed file.

        Returns:
            True if the environment was refreshed.
        """
        if not self.is_variables_file(path):
            return False

        self.load_variables()

        return True

    def pipeline(self) -> DocumentPipeline:
        """Build a pipeline bound to the current environment."""
        return DocumentPipeline(self.variables, self.settings)

    def process(self, path: 'str | PathLike[str]') -> 'PipelineResult':
        """Run the pipeline over a document file.

        Args:
            path: Document file path.

        Returns:
            Pipeline outcome.
        """
        return self.pipeline().run_file(path)

    def _read_variables(self, path: Path) -> dict[str, object]:
        """Read and parse a variables file.

        Raises:
            DocumentError: If the file cannot be read, is not valid YAML,
                or its top level is not a mapping.
        """
        try:
            content = path.read_text(encoding=self.settings.encoding)
        except (OSError, UnicodeDecodeError) as base:
            raise DocumentError(f'Cannot read file: {base}') from base

        data = parse_source(content, filename=str(path))
        if data is None:
            return {}

        if not isinstance(data, MAPPINGS):
            raise DocumentError('Variables file must contain a mapping')

        return dict(data)
