"""Common literal values used across metamon.

These constants keep the source-unit syntax markers, supported targets, and
runtime binding names centralized so the parser, resolver, code generator, and
tests import the same values without drifting.

Examples
--------
>>> from metamon import _constants
>>> _constants.SOURCE_EXTENSION
'.mtm'
>>> "reactjs" in _constants.SUPPORTED_TARGETS
True
"""

SOURCE_EXTENSION = ".mtm"
FRONTMATTER_DELIMITER = "---"
DEFAULT_PAGES_DIR = "src/pages"
DEFAULT_CONFIG_FILE = "metamon.yaml"

SUPPORTED_TARGETS: tuple[str, ...] = ("reactjs", "vue", "solid", "svelte")

RUNTIME_MODULE = "@metamon/core"
RUNTIME_SIGNAL_MANAGER = "signalManager"
RUNTIME_EVENT_BUS = "pubSubSystem"

RUNTIME_SECTION_START = "// metamon:runtime:start"
RUNTIME_SECTION_END = "// metamon:runtime:end"

IDENTIFIER_PATTERN = r"^[A-Za-z][A-Za-z0-9_]*$"
