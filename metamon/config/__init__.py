"""Load and validate ``metamon.yaml`` project configuration.

This subpackage parses the project's configuration file, applies defaults, and
resolves relative directories against the file's location, producing a frozen
:class:`CompilerConfig` that the resolver, compiler, and CLI consume. The
primary entry point is :func:`load_compiler_config`.

Examples
--------
>>> from pathlib import Path
>>> from metamon.config import load_compiler_config
>>> config = load_compiler_config(Path("metamon.yaml"))  # doctest: +SKIP
>>> config.alias  # doctest: +SKIP
{'@components/': 'src/components/'}
"""

from metamon.errors import ConfigError

from .loader import load_compiler_config
from .models import CompilerConfig

__all__ = ["CompilerConfig", "ConfigError", "load_compiler_config"]
